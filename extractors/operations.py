"""
Operation extractor — pure function, no I/O.

Projects an SDK long-running operation (import or upload-to-store) onto
OperationStatus.
"""

from typing import Any

from models import OperationStatus, OperationType


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return str(error)


def operation_to_status(operation: Any, kind: OperationType | None = None) -> OperationStatus:
    """
    Convert an SDK operation into an OperationStatus.

    Args:
        operation: ImportFileOperation or UploadToFileSearchStoreOperation
            (anything with name/done/error/metadata/response attributes)
        kind: Which poll produced it

    Returns:
        OperationStatus. failed is set whenever the operation carries an error.
    """
    error = getattr(operation, "error", None)
    response = getattr(operation, "response", None)
    metadata = getattr(operation, "metadata", None)

    return OperationStatus(
        name=getattr(operation, "name", None) or "",
        type=kind,
        done=bool(getattr(operation, "done", False)),
        failed=bool(error),
        error_message=_error_message(error) if error else None,
        metadata=dict(metadata) if isinstance(metadata, dict) and metadata else None,
        parent=getattr(response, "parent", None) if response is not None else None,
        document_name=getattr(response, "document_name", None) if response is not None else None,
    )
