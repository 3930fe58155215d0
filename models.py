"""
Type definitions for file-search.

Dataclasses defining the contracts between layers:
- Adapters wrap the Gemini SDK and raise FileSearchError
- Extractors turn SDK responses into these structures and into text
- Tools wire everything together and return plain dicts

SDK records (stores, files, documents) are passed through as-is and only
converted to dicts at the tool boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    NOT_FOUND = "not_found"                  # Name resolution or remote lookup failed
    AMBIGUOUS_INPUT = "ambiguous_input"      # Reference needs more context (e.g. a store)
    INVALID_INPUT = "invalid_input"          # Bad local arguments
    MALFORMED_IDENTIFIER = "malformed_identifier"  # Identifier has the wrong shape
    REMOTE_REJECTION = "remote_rejection"    # Service refused the request
    AUTH_REQUIRED = "auth_required"          # Missing or rejected API key
    PERMISSION_DENIED = "permission_denied"  # Key lacks access
    RATE_LIMITED = "rate_limited"            # Hit API quota
    NETWORK_ERROR = "network_error"          # Connection failed
    TIMEOUT = "timeout"                      # Request timed out
    OPERATION_FAILED = "operation_failed"    # Long-running operation ended in error
    CANCELLED = "cancelled"                  # Interrupted by the user
    UNKNOWN = "unknown"                      # Unexpected error


class FileSearchError(Exception):
    """
    Structured error for consistent handling across layers.

    Adapters raise these on API failures.
    The CLI prints the message; MCP tools return to_dict().

    Inherits from Exception so it can be raised.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


# ============================================================================
# RESOURCE KINDS
# ============================================================================

class ResourceKind(Enum):
    """Resource kinds the name resolver understands."""
    STORE = "store"
    FILE = "file"
    DOCUMENT = "document"


class OperationType(Enum):
    """Kinds of long-running operation. Each is polled with its own SDK type."""
    IMPORT = "import"
    UPLOAD = "upload"


# ============================================================================
# OPERATIONS
# ============================================================================

@dataclass
class OperationStatus:
    """
    Snapshot of a long-running operation.

    done is monotonic on the remote side; once done, failed is final.
    """
    name: str
    type: OperationType | None = None
    done: bool = False
    failed: bool = False
    error_message: str | None = None
    metadata: dict[str, Any] | None = None
    parent: str | None = None  # Store the document was indexed into
    document_name: str | None = None

    @property
    def state(self) -> str:
        if self.failed:
            return "FAILED"
        if self.done:
            return "DONE"
        return "PENDING"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "done": self.done,
            "state": self.state,
        }
        if self.type is not None:
            result["type"] = self.type.value
        if self.error_message:
            result["error"] = self.error_message
        if self.metadata:
            result["metadata"] = self.metadata
        if self.parent:
            result["parent"] = self.parent
        if self.document_name:
            result["document_name"] = self.document_name
        return result


# ============================================================================
# UPLOADS AND BATCHES
# ============================================================================

@dataclass
class UploadOptions:
    """Options for upload-and-index into a store."""
    display_name: str | None = None
    mime_type: str | None = None
    max_chunk_tokens: int | None = None
    chunk_overlap_tokens: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class BatchResult:
    """
    Aggregate outcome of a batch run.

    Every dispatched item lands in exactly one of succeeded or failed.
    Items never dispatched (after cancellation) appear in neither.
    """
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, Exception] = field(default_factory=dict)
    total: int = 0

    @property
    def cancelled(self) -> bool:
        return len(self.succeeded) + len(self.failed) < self.total

    def to_dict(self, store: str | None = None) -> dict[str, Any]:
        files: list[dict[str, Any]] = []
        for item in self.succeeded:
            entry: dict[str, Any] = {"file": item, "status": "success"}
            if store:
                entry["store"] = store
            files.append(entry)
        for item, error in self.failed.items():
            entry = {"file": item, "status": "failed", "error": str(error)}
            if store:
                entry["store"] = store
            files.append(entry)
        return {
            "total": self.total,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "files": files,
        }


# ============================================================================
# QUERY TYPES
# ============================================================================

@dataclass
class GroundingChunk:
    """One retrieved source backing a query answer."""
    source: str = "document"  # "document" (File Search) or "web"
    title: str | None = None
    uri: str | None = None
    text: str | None = None
    first_page: int | None = None
    last_page: int | None = None
    store: str | None = None  # File Search store the chunk came from

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("source", "title", "uri", "text", "first_page", "last_page", "store"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class QueryResult:
    """Answer text plus the grounding that produced it."""
    answer: str
    model: str
    store_name: str | None = None
    chunks: list[GroundingChunk] = field(default_factory=list)
    grounding_metadata: dict[str, Any] | None = None  # Raw, for --debug

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "answer": self.answer,
            "model": self.model,
            "sources": [chunk.to_dict() for chunk in self.chunks],
        }
        if self.store_name:
            result["store"] = self.store_name
        return result
