"""
Input validation and identifier shape checks.

Handles:
- Resource name shapes (store, file, document, operation)
- --metadata key=value pairs and the MCP metadata JSON object
- Operation type names

Shape checks are purely syntactic. They never call the API.
"""

import json

from config import DOCUMENT_INFIX, FILE_PREFIX, OPERATION_INFIX, STORE_PREFIX
from models import ErrorKind, FileSearchError, OperationType

# =============================================================================
# IDENTIFIER SHAPES
# =============================================================================


def is_store_name(value: str) -> bool:
    """True for canonical store names (fileSearchStores/...)."""
    return value.startswith(STORE_PREFIX)


def is_file_name(value: str) -> bool:
    """True for canonical raw-file names (files/...)."""
    return value.startswith(FILE_PREFIX)


def is_document_name(value: str) -> bool:
    """True for canonical document names (.../documents/...)."""
    return DOCUMENT_INFIX in value


def validate_operation_name(name: str) -> str:
    """
    Check an operation name's shape before any network call.

    Operation names look like fileSearchStores/<id>/operations/<id>
    (upload operations use .../upload/operations/<id>).

    Raises:
        FileSearchError(MALFORMED_IDENTIFIER): Wrong prefix or no operations segment
    """
    if not name.startswith(STORE_PREFIX):
        raise FileSearchError(
            ErrorKind.MALFORMED_IDENTIFIER,
            f"invalid operation name: must start with '{STORE_PREFIX}'",
        )
    if OPERATION_INFIX not in name:
        raise FileSearchError(
            ErrorKind.MALFORMED_IDENTIFIER,
            f"invalid operation name: must contain '{OPERATION_INFIX}'",
        )
    return name


def parse_operation_type(value: str | None) -> OperationType | None:
    """Parse --type. Empty means auto-detect."""
    if not value:
        return None
    try:
        return OperationType(value)
    except ValueError:
        raise FileSearchError(
            ErrorKind.INVALID_INPUT,
            f"invalid operation type: {value} (must be 'import' or 'upload')",
        ) from None


# =============================================================================
# METADATA
# =============================================================================


def parse_metadata_pairs(pairs: list[str] | None) -> dict[str, str]:
    """
    Parse repeated --metadata key=value flags.

    Splits on the first '=' so values may contain '='.
    Entries without '=' are ignored.
    """
    metadata: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        metadata[key] = value
    return metadata


def parse_metadata_json(value: str | None) -> dict[str, str]:
    """
    Parse the MCP upload metadata argument: a JSON object of strings.

    Raises:
        FileSearchError(INVALID_INPUT): Not JSON, not an object, or non-string values
    """
    if not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, f"Failed to parse metadata JSON: {e}"
        ) from e
    if not isinstance(data, dict):
        raise FileSearchError(
            ErrorKind.INVALID_INPUT, "Failed to parse metadata JSON: expected an object"
        )
    bad = [key for key, item in data.items() if not isinstance(item, str)]
    if bad:
        raise FileSearchError(
            ErrorKind.INVALID_INPUT,
            f"Failed to parse metadata JSON: values must be strings ({', '.join(bad)})",
        )
    return data
