#!/usr/bin/env python3
"""
File Search MCP Server

Exposes Gemini File Search stores, files and documents as MCP tools over
stdio, so an agent can manage a knowledge base and query it.

Tools (each can be enabled through the allow-list):
- list_stores, list_files, list_documents
- create_store, delete_store
- import_file_to_store, upload_file
- delete_file, delete_document
- query_knowledge_base

Allow-list aliases: "all" (every tool), "query", "upload", "delete".

Architecture:
- extractors/: Pure functions (no MCP, no API calls)
- adapters/: Thin google-genai wrappers
- tools/: Business logic shared with the CLI
- server.py: Thin MCP wrappers (this file)
"""

import os
import signal
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from adapters.gemini import GeminiClient
from config import API_KEY_MISSING_MESSAGE, Settings, expand_tool_names, load_settings
from extractors.formatting import record_to_dict
from logging_config import configure_logging, logger
from models import ErrorKind, FileSearchError, UploadOptions
from tools import (
    NameResolver,
    do_create_store,
    do_delete_document,
    do_delete_file,
    do_delete_store,
    do_import_file,
    do_list_documents,
    do_list_files,
    do_list_stores,
    do_query,
    do_upload_file,
)
from validation import parse_metadata_json

SERVER_NAME = "File Search"


def _resolved(what: str, resolve: Callable[[], str]) -> str:
    """Run a name resolution, prefixing any failure with what was being resolved."""
    try:
        return resolve()
    except FileSearchError as e:
        raise FileSearchError(e.kind, f"Failed to resolve {what}: {e.message}", e.details) from e


class FileSearchTools:
    """
    MCP tool implementations bound to one gateway.

    Every tool returns a dict; failures come back as
    {"error": True, "kind": ..., "message": ...} rather than raising.
    """

    def __init__(self, client: GeminiClient | None):
        self.client = client
        self.resolver = NameResolver(client) if client is not None else None

    def _run(self, action: Callable[[NameResolver], dict[str, Any]]) -> dict[str, Any]:
        if self.resolver is None:
            return FileSearchError(ErrorKind.AUTH_REQUIRED, API_KEY_MISSING_MESSAGE).to_dict()
        try:
            return action(self.resolver)
        except FileSearchError as e:
            logger.warning(f"Tool failed ({e.kind.value}): {e.message}")
            return e.to_dict()

    def list_stores(self) -> dict[str, Any]:
        """
        List all File Search stores.

        Returns:
            stores: Store records (name, displayName, document counts, size)
        """
        return self._run(lambda r: {"stores": record_to_dict(do_list_stores(r.client))})

    def list_files(self) -> dict[str, Any]:
        """
        List all files in the Gemini Files API.

        Returns:
            files: File records (name, displayName, uri, mimeType, state)
        """
        return self._run(lambda r: {"files": record_to_dict(do_list_files(r.client))})

    def list_documents(self, store_name: str) -> dict[str, Any]:
        """
        List the documents indexed in a store.

        Args:
            store_name: Store display name or resource name (fileSearchStores/...)

        Returns:
            store: Resolved store resource name
            documents: Document records
        """
        def action(r: NameResolver) -> dict[str, Any]:
            store = _resolved("store name", lambda: r.resolve_store(store_name))
            return {"store": store, "documents": record_to_dict(do_list_documents(r, store))}
        return self._run(action)

    def create_store(self, display_name: str) -> dict[str, Any]:
        """
        Create a new File Search store.

        Args:
            display_name: Human-readable name for the store

        Returns:
            The created store record
        """
        return self._run(lambda r: record_to_dict(do_create_store(r.client, display_name)))

    def delete_store(self, store_name: str, force: bool = False) -> dict[str, Any]:
        """
        Delete a File Search store.

        Args:
            store_name: Store display name or resource name
            force: Also delete the store's documents. Without it, deleting a
                non-empty store is rejected by the service.

        Returns:
            deleted: Resource name of the deleted store
        """
        def action(r: NameResolver) -> dict[str, Any]:
            store = _resolved("store name", lambda: r.resolve_store(store_name))
            return {"deleted": do_delete_store(r, store, force=force)}
        return self._run(action)

    def import_file_to_store(self, file_name: str, store_name: str) -> dict[str, Any]:
        """
        Import a file from the Files API into a store and wait for indexing.

        Args:
            file_name: File display name or resource name (files/...)
            store_name: Store display name or resource name

        Returns:
            file, store: Resolved resource names
            operation: Final operation status
        """
        def action(r: NameResolver) -> dict[str, Any]:
            file = _resolved("file name", lambda: r.resolve_file(file_name))
            store = _resolved("store name", lambda: r.resolve_store(store_name))
            status = do_import_file(r.client, file, store, quiet=True)
            return {"file": file, "store": store, "operation": status.to_dict()}
        return self._run(action)

    def query_knowledge_base(
        self,
        query: str,
        store_name: str | None = None,
        model: str | None = None,
        metadata_filter: str | None = None,
    ) -> dict[str, Any]:
        """
        Ask a question, answered from a store's indexed documents.

        Args:
            query: The question
            store_name: Store display name or resource name. Without it the
                model answers without retrieval.
            model: Model name (default: gemini-2.5-flash)
            metadata_filter: Narrow retrieval by custom metadata, e.g.
                'category = "research"' or 'status = "reviewed" AND priority = "high"'.
                Only used together with store_name.

        Returns:
            answer: Generated answer text
            model: Model used
            sources: Grounding chunks (title, uri, text, page span)
        """
        def action(r: NameResolver) -> dict[str, Any]:
            store = _resolved("store name", lambda: r.resolve_store(store_name)) if store_name else None
            return do_query(r, query, store_ref=store, model=model,
                            metadata_filter=metadata_filter).to_dict()
        return self._run(action)

    def upload_file(
        self,
        path: str,
        store_name: str | None = None,
        mime_type: str | None = None,
        metadata: str | None = None,
    ) -> dict[str, Any]:
        """
        Upload a local file, optionally straight into a store.

        With a store the file is uploaded and indexed, and the call waits
        for indexing to finish. Without one it is only uploaded to the
        Files API (use import_file_to_store later).

        Args:
            path: Absolute path to the local file
            store_name: Store display name or resource name
            mime_type: MIME type (detected from the file when omitted)
            metadata: JSON object of string values, e.g.
                '{"category": "research", "author": "Smith"}'. Only used with store_name.

        Returns:
            The file record (no store), or path, store and operation status
        """
        def action(r: NameResolver) -> dict[str, Any]:
            custom_metadata = parse_metadata_json(metadata)
            store = _resolved("store name", lambda: r.resolve_store(store_name)) if store_name else None
            options = UploadOptions(
                display_name=os.path.basename(path),
                mime_type=mime_type,
                metadata=custom_metadata,
            )
            result = do_upload_file(r.client, path, store, options, quiet=True)
            if store is None:
                return record_to_dict(result)
            return {"uploaded": path, "store": store, "operation": result.to_dict()}
        return self._run(action)

    def delete_file(self, file_name: str) -> dict[str, Any]:
        """
        Delete a file from the Gemini Files API.

        Args:
            file_name: File display name or resource name (files/...)

        Returns:
            deleted: Resource name of the deleted file
        """
        def action(r: NameResolver) -> dict[str, Any]:
            file = _resolved("file name", lambda: r.resolve_file(file_name))
            return {"deleted": do_delete_file(r, file)}
        return self._run(action)

    def delete_document(self, store_name: str, document_name: str, force: bool = False) -> dict[str, Any]:
        """
        Delete a document from a store.

        Args:
            store_name: Store display name or resource name
            document_name: Document display name or resource name
            force: Also delete the document's chunks (required by the
                service for documents that still hold chunks)

        Returns:
            deleted: Resource name of the deleted document
            store: Resolved store resource name
        """
        def action(r: NameResolver) -> dict[str, Any]:
            store = _resolved("store name", lambda: r.resolve_store(store_name))
            document = _resolved("document name", lambda: r.resolve_document(document_name, store))
            return {"deleted": do_delete_document(r, document, store, force=force), "store": store}
        return self._run(action)


def create_server(tools: FileSearchTools, enabled: list[str]) -> FastMCP:
    """
    Build a FastMCP server with only the allowed tools registered.

    Args:
        tools: Bound tool implementations
        enabled: Allow-list entries (tool names and/or aliases)
    """
    mcp = FastMCP(SERVER_NAME)
    allowed = expand_tool_names(enabled)
    for name in sorted(allowed):
        mcp.add_tool(getattr(tools, name), name=name)
    logger.info(f"Registered MCP tools: {', '.join(sorted(allowed)) or '(none)'}")
    return mcp


def build_server(settings: Settings) -> FastMCP:
    """Server for the given settings. Starts without an API key; tools then report auth_required."""
    client = GeminiClient.from_api_key(settings.api_key) if settings.api_key else None
    if client is None:
        logger.warning(API_KEY_MISSING_MESSAGE)
    return create_server(FileSearchTools(client), settings.mcp_tools)


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Handle termination signals by exiting immediately.

    os._exit() is required because sys.exit() raises SystemExit,
    which asyncio's event loop catches and ignores. The server
    would survive SIGTERM until stdin closes.
    """
    os._exit(0)


def run_server(settings: Settings) -> None:
    """Serve MCP over stdio until the client disconnects."""
    configure_logging("INFO")
    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)
    build_server(settings).run()


if __name__ == "__main__":
    run_server(load_settings())
