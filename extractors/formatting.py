"""
Text formatting — pure functions, no I/O.

Renders SDK records and result types for the CLI's text output mode.
JSON mode goes through record_to_dict() instead.
"""

import json
import re
from datetime import datetime
from enum import Enum
from typing import Any

from models import BatchResult, GroundingChunk, OperationStatus, QueryResult

SNIPPET_LIMIT = 200
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def record_to_dict(record: Any) -> Any:
    """Convert an SDK record (pydantic model) to JSON-safe data."""
    if record is None:
        return None
    if isinstance(record, list):
        return [record_to_dict(item) for item in record]
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json", exclude_none=True)
    if hasattr(record, "to_dict"):
        return record.to_dict()
    if hasattr(record, "__dict__"):
        return {k: v for k, v in vars(record).items() if v is not None}
    return record


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _int(value: Any) -> int:
    return int(value) if value else 0


# ============================================================================
# RECORDS
# ============================================================================

def format_store_list(stores: list[Any]) -> str:
    return "\n".join(f"{_text(s.display_name)} ({s.name})" for s in stores)


def format_store(store: Any) -> str:
    return "\n".join([
        f"Name: {store.name}",
        f"Display Name: {_text(store.display_name)}",
        f"Create Time: {_text(store.create_time)}",
        f"Update Time: {_text(store.update_time)}",
        f"Active Documents: {_int(store.active_documents_count)}",
        f"Pending Documents: {_int(store.pending_documents_count)}",
        f"Failed Documents: {_int(store.failed_documents_count)}",
        f"Total Size: {_int(store.size_bytes)} bytes",
    ])


def format_file_list(files: list[Any]) -> str:
    return "\n".join(f"{_text(f.display_name)} ({f.name}) - {_text(f.uri)}" for f in files)


def format_file(file: Any) -> str:
    return "\n".join([
        f"Name: {file.name}",
        f"Display Name: {_text(file.display_name)}",
        f"URI: {_text(file.uri)}",
        f"MIME Type: {_text(file.mime_type)}",
        f"Size: {_int(file.size_bytes)} bytes",
        f"Create Time: {_text(file.create_time)}",
        f"Update Time: {_text(file.update_time)}",
        f"State: {_text(file.state)}",
    ])


def format_document_list(documents: list[Any]) -> str:
    return "\n".join(
        f"{_text(d.display_name)} ({d.name}) - {_text(d.state)} - {_int(d.size_bytes)} bytes"
        for d in documents
    )


def format_document(document: Any) -> str:
    lines = [
        f"Name: {document.name}",
        f"Display Name: {_text(document.display_name)}",
        f"State: {_text(document.state)}",
        f"Size: {_int(document.size_bytes)} bytes",
        f"MIME Type: {_text(document.mime_type)}",
        f"Create Time: {_text(document.create_time)}",
        f"Update Time: {_text(document.update_time)}",
    ]
    custom_metadata = getattr(document, "custom_metadata", None) or []
    if custom_metadata:
        lines.append("Custom Metadata:")
        for meta in custom_metadata:
            lines.append(f"  {meta.key}: {_text(meta.string_value)}")
    return "\n".join(lines)


# ============================================================================
# QUERY
# ============================================================================

def clean_snippet(text: str) -> str:
    """Collapse all whitespace to single spaces and cap at 200 characters."""
    text = " ".join(text.split())
    if len(text) > SNIPPET_LIMIT:
        text = text[:SNIPPET_LIMIT - 3] + "..."
    return text


def collapse_newlines(text: str) -> str:
    """Reduce runs of three or more newlines to a single blank line."""
    return _EXCESS_NEWLINES.sub("\n\n", text)


def page_label(chunk: GroundingChunk) -> str | None:
    if not chunk.first_page:
        return None
    if not chunk.last_page or chunk.last_page == chunk.first_page:
        return f"Page {chunk.first_page}"
    return f"Pages {chunk.first_page}-{chunk.last_page}"


def _format_chunk(index: int, chunk: GroundingChunk, verbose: bool) -> list[str]:
    if chunk.source == "web":
        return [f"  {index}. [Web] {_text(chunk.title)} ({_text(chunk.uri)})"]

    location: list[str] = []
    if chunk.uri:
        location.append(f"URI: {chunk.uri}")
    page = page_label(chunk)
    if page:
        location.append(page)
    suffix = f" ({', '.join(location)})" if location else ""

    lines = [f"  {index}. [Doc] {chunk.title or 'Unknown Document'}{suffix}"]
    if chunk.text:
        if verbose:
            lines.append("     Full Text:")
            lines.append(collapse_newlines(chunk.text))
        else:
            lines.append(f"     Snippet: {clean_snippet(chunk.text)}")
    return lines


def format_query_result(result: QueryResult, verbose: bool = False, debug: bool = False) -> str:
    """
    Render an answer followed by its grounding sources.

    Args:
        result: Parsed query result
        verbose: Print each source's full text instead of a snippet
        debug: Also dump the raw grounding metadata as JSON
    """
    lines = [result.answer]
    if result.grounding_metadata is None:
        return "\n".join(lines)

    lines.append("")
    lines.append("[Grounding Metadata]")
    if debug:
        lines.append(json.dumps(result.grounding_metadata, indent=2, default=str))

    if result.chunks:
        lines.append("")
        lines.append("Sources:")
        for index, chunk in enumerate(result.chunks, start=1):
            lines.extend(_format_chunk(index, chunk, verbose))
    return "\n".join(lines)


# ============================================================================
# OPERATIONS AND BATCHES
# ============================================================================

def format_operation_status(status: OperationStatus) -> str:
    lines = [
        f"Operation: {status.name}",
        f"Type: {status.type.value if status.type else 'unknown'}",
        f"Status: {status.state}",
    ]
    if status.failed:
        lines.append(f"Error: {_text(status.error_message)}")
    elif status.done:
        if status.parent:
            lines.append(f"Store: {status.parent}")
        if status.document_name:
            lines.append(f"Document: {status.document_name}")

    if status.metadata:
        lines.append("")
        lines.append("Metadata:")
        for key in sorted(status.metadata):
            lines.append(f"  {key}: {status.metadata[key]}")
    return "\n".join(lines)


def format_progress(current: int, total: int, item: str, error: Exception | None) -> str:
    if error is not None:
        return f"[{current}/{total}] ✗ Failed: {item} ({error})"
    return f"[{current}/{total}] ✓ Finished: {item}"


def format_batch_summary(result: BatchResult) -> str:
    return "\n".join([
        "Summary:",
        f"  ✓ Succeeded: {len(result.succeeded)}",
        f"  ✗ Failed: {len(result.failed)}",
    ])


def format_batch_failures(result: BatchResult) -> str:
    lines = ["Failed files:"]
    for item, error in result.failed.items():
        lines.append(f"  - {item}: {error}")
    return "\n".join(lines)
