"""
Gemini adapter — thin wrapper over the google-genai File Search surface.

Every method is a single request/response call (listings follow page
tokens to the end). Long-running operations are returned to the caller;
polling lives in tools/poller.py. Errors surface as FileSearchError.
"""

from typing import Any

from google import genai
from google.genai import types

from adapters.services import get_genai_client
from api_errors import translate_errors
from logging_config import log_api_call, log_api_result
from models import (
    ErrorKind,
    FileSearchError,
    OperationStatus,
    OperationType,
    UploadOptions,
)
from extractors.operations import operation_to_status
from validation import validate_operation_name


def _upload_config(options: UploadOptions) -> dict[str, Any]:
    """Build the upload-to-store config dict, omitting unset fields."""
    config: dict[str, Any] = {}
    if options.display_name:
        config["display_name"] = options.display_name
    if options.mime_type:
        config["mime_type"] = options.mime_type

    white_space: dict[str, int] = {}
    if options.max_chunk_tokens and options.max_chunk_tokens > 0:
        white_space["max_tokens_per_chunk"] = options.max_chunk_tokens
    if options.chunk_overlap_tokens and options.chunk_overlap_tokens > 0:
        white_space["max_overlap_tokens"] = options.chunk_overlap_tokens
    if white_space:
        config["chunking_config"] = {"white_space_config": white_space}

    if options.metadata:
        config["custom_metadata"] = [
            {"key": key, "string_value": value}
            for key, value in options.metadata.items()
        ]
    return config


class GeminiClient:
    """
    Remote service gateway.

    Wraps a genai.Client. Construct with from_api_key() in commands, or pass
    a fake client in tests.
    """

    def __init__(self, client: genai.Client):
        self._client = client

    @classmethod
    def from_api_key(cls, api_key: str, timeout_seconds: float | None = None) -> "GeminiClient":
        return cls(get_genai_client(api_key, timeout_seconds))

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @translate_errors
    def list_stores(self) -> list[types.FileSearchStore]:
        log_api_call("file_search_stores", "list")
        stores = list(self._client.file_search_stores.list())
        log_api_result("file_search_stores", "list", len(stores))
        return stores

    @translate_errors
    def list_files(self) -> list[types.File]:
        log_api_call("files", "list")
        files = list(self._client.files.list())
        log_api_result("files", "list", len(files))
        return files

    @translate_errors
    def list_documents(self, store_name: str) -> list[types.Document]:
        log_api_call("file_search_stores.documents", "list", parent=store_name)
        documents = list(self._client.file_search_stores.documents.list(parent=store_name))
        log_api_result("file_search_stores.documents", "list", len(documents))
        return documents

    @translate_errors
    def list_models(self) -> list[types.Model]:
        log_api_call("models", "list")
        models = list(self._client.models.list())
        log_api_result("models", "list", len(models))
        return models

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    @translate_errors
    def get_store(self, name: str) -> types.FileSearchStore:
        log_api_call("file_search_stores", "get", name=name)
        return self._client.file_search_stores.get(name=name)

    @translate_errors
    def create_store(self, display_name: str) -> types.FileSearchStore:
        log_api_call("file_search_stores", "create", display_name=display_name)
        store = self._client.file_search_stores.create(config={"display_name": display_name})
        log_api_result("file_search_stores", "create")
        return store

    @translate_errors
    def delete_store(self, name: str, force: bool = False) -> None:
        """Delete a store. The service rejects non-empty stores unless force is set."""
        log_api_call("file_search_stores", "delete", name=name, force=force)
        config = {"force": True} if force else None
        self._client.file_search_stores.delete(name=name, config=config)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @translate_errors
    def upload_file(
        self,
        path: str,
        display_name: str | None = None,
        mime_type: str | None = None,
    ) -> types.File:
        """Upload to the Files API only (no store, no indexing)."""
        log_api_call("files", "upload", path=path, display_name=display_name, mime_type=mime_type)
        config: dict[str, Any] = {}
        if display_name:
            config["display_name"] = display_name
        if mime_type:
            config["mime_type"] = mime_type
        return self._client.files.upload(file=path, config=config or None)

    @translate_errors
    def upload_to_store(
        self,
        path: str,
        store_name: str,
        options: UploadOptions | None = None,
    ) -> types.UploadToFileSearchStoreOperation:
        """Start an upload-and-index operation. Returns the live operation."""
        options = options or UploadOptions()
        log_api_call("file_search_stores", "upload_to_file_search_store",
                     path=path, store=store_name)
        config = _upload_config(options)
        return self._client.file_search_stores.upload_to_file_search_store(
            file=path,
            file_search_store_name=store_name,
            config=config or None,
        )

    @translate_errors
    def import_file(self, file_name: str, store_name: str) -> types.ImportFileOperation:
        """Start importing a Files API file into a store. Returns the live operation."""
        log_api_call("file_search_stores", "import_file", file=file_name, store=store_name)
        return self._client.file_search_stores.import_file(
            file_search_store_name=store_name,
            file_name=file_name,
        )

    @translate_errors
    def get_file(self, name: str) -> types.File:
        log_api_call("files", "get", name=name)
        return self._client.files.get(name=name)

    @translate_errors
    def delete_file(self, name: str) -> None:
        log_api_call("files", "delete", name=name)
        self._client.files.delete(name=name)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @translate_errors
    def get_document(self, name: str) -> types.Document:
        log_api_call("file_search_stores.documents", "get", name=name)
        return self._client.file_search_stores.documents.get(name=name)

    @translate_errors
    def delete_document(self, name: str, force: bool = False) -> None:
        log_api_call("file_search_stores.documents", "delete", name=name, force=force)
        config = {"force": True} if force else None
        self._client.file_search_stores.documents.delete(name=name, config=config)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    @translate_errors
    def query(
        self,
        text: str,
        model: str,
        store_name: str | None = None,
        metadata_filter: str | None = None,
    ) -> types.GenerateContentResponse:
        """
        Ask a question, grounded on a store when one is given.

        The metadata filter only applies together with a store.
        """
        log_api_call("models", "generate_content", model=model, store=store_name,
                     metadata_filter=metadata_filter)
        config = None
        if store_name:
            file_search = types.FileSearch(
                file_search_store_names=[store_name],
                metadata_filter=metadata_filter or None,
            )
            config = types.GenerateContentConfig(tools=[types.Tool(file_search=file_search)])
        return self._client.models.generate_content(model=model, contents=text, config=config)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @translate_errors
    def refresh_operation(self, operation: Any) -> Any:
        """Re-fetch a live operation object (one poll)."""
        return self._client.operations.get(operation)

    @translate_errors
    def _get_import_operation(self, name: str) -> types.ImportFileOperation:
        log_api_call("operations", "get", name=name, type="import")
        return self._client.operations.get(types.ImportFileOperation(name=name))

    @translate_errors
    def _get_upload_operation(self, name: str) -> types.UploadToFileSearchStoreOperation:
        log_api_call("operations", "get", name=name, type="upload")
        return self._client.operations.get(types.UploadToFileSearchStoreOperation(name=name))

    def get_operation(self, name: str, kind: OperationType | None = None) -> OperationStatus:
        """
        Fetch an operation's status by name.

        The name shape is checked before any network call. Without a kind,
        the import poll is tried first and the upload poll only when the
        service does not recognize the name as an import operation.
        Transport errors propagate immediately.
        """
        validate_operation_name(name)

        if kind is OperationType.IMPORT:
            return operation_to_status(self._get_import_operation(name), OperationType.IMPORT)
        if kind is OperationType.UPLOAD:
            return operation_to_status(self._get_upload_operation(name), OperationType.UPLOAD)

        try:
            operation = self._get_import_operation(name)
        except FileSearchError as e:
            if e.kind not in (ErrorKind.NOT_FOUND, ErrorKind.REMOTE_REJECTION):
                raise
            return operation_to_status(self._get_upload_operation(name), OperationType.UPLOAD)
        return operation_to_status(operation, OperationType.IMPORT)
