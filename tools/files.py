"""
File operations — Files API records plus upload/import into stores.

Uploading with a store goes straight to upload-and-index and waits for the
operation. Uploading without a store only creates a Files API record,
which can later be imported with import_file.

The multi-input variants run through the batch executor. Inner progress
lines are suppressed when more than one item is in flight so that the
per-item [i/N] lines do not interleave with them.
"""

import os
import sys
import threading
from typing import Any, TextIO

from adapters.gemini import GeminiClient
from models import (
    BatchResult,
    ErrorKind,
    FileSearchError,
    OperationStatus,
    OperationType,
    UploadOptions,
)
from tools.batch import BatchOptions, ProgressCallback, process_batch
from tools.poller import raise_if_failed, wait_for_operation
from tools.resolve import NameResolver


def do_list_files(client: GeminiClient) -> list[Any]:
    return client.list_files()


def do_get_file(resolver: NameResolver, file_ref: str) -> Any:
    file_name = resolver.resolve_file(file_ref)
    return resolver.client.get_file(file_name)


def do_delete_file(resolver: NameResolver, file_ref: str) -> str:
    """Delete a Files API file, returning its resource name."""
    file_name = resolver.resolve_file(file_ref)
    resolver.client.delete_file(file_name)
    return file_name


def do_upload_file(
    client: GeminiClient,
    path: str,
    store_name: str | None = None,
    options: UploadOptions | None = None,
    quiet: bool = True,
    stream: TextIO | None = None,
    cancel_event: threading.Event | None = None,
) -> Any:
    """
    Upload one local file.

    Args:
        client: Gateway
        path: Local file path
        store_name: Resolved store name; None uploads to the Files API only
        options: Display name, MIME type, chunking and metadata
        quiet: Suppress progress output
        stream: Progress stream (default stderr)
        cancel_event: Abandons the indexing wait when set

    Returns:
        The Files API record without a store, otherwise the terminal
        OperationStatus of the upload-and-index operation.

    Raises:
        FileSearchError(INVALID_INPUT): Path is not a file
        FileSearchError(OPERATION_FAILED): Indexing finished with an error
        FileSearchError(CANCELLED): cancel_event was set before indexing finished
    """
    if not os.path.isfile(path):
        raise FileSearchError(ErrorKind.INVALID_INPUT, f"file not found: {path}")
    options = options or UploadOptions()
    out = stream if stream is not None else sys.stderr

    if not store_name:
        return client.upload_file(path, display_name=options.display_name,
                                  mime_type=options.mime_type)

    if not quiet:
        out.write(f"Uploading {path} to store {store_name}...\n")
    operation = client.upload_to_store(path, store_name, options)
    status = wait_for_operation(client, operation, OperationType.UPLOAD,
                                label="Indexing", quiet=quiet, stream=out,
                                cancel_event=cancel_event)
    raise_if_failed(status, f"upload of {path}")
    if not quiet:
        out.write("✓ Upload and index complete.\n")
    return status


def do_import_file(
    client: GeminiClient,
    file_name: str,
    store_name: str,
    quiet: bool = True,
    stream: TextIO | None = None,
    cancel_event: threading.Event | None = None,
) -> OperationStatus:
    """
    Import a Files API file into a store and wait for indexing.

    Both names must already be resolved.
    """
    out = stream if stream is not None else sys.stderr
    if not quiet:
        out.write(f"Importing file {file_name} into store {store_name}...\n")
    operation = client.import_file(file_name, store_name)
    if not quiet:
        out.write(f"Operation ID: {operation.name}\n")
    status = wait_for_operation(client, operation, OperationType.IMPORT,
                                label="Importing", quiet=quiet, stream=out,
                                cancel_event=cancel_event)
    raise_if_failed(status, f"import of {file_name}")
    if not quiet:
        out.write("✓ Import complete.\n")
    return status


def do_upload_files(
    client: GeminiClient,
    paths: list[str],
    store_name: str | None = None,
    options: UploadOptions | None = None,
    concurrency: int = 0,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    quiet: bool = False,
) -> BatchResult:
    """
    Upload several files concurrently.

    Each file's display name defaults to its base name unless
    options.display_name is set (only allowed for a single path).
    """
    options = options or UploadOptions()
    if len(paths) > 1 and options.display_name:
        raise FileSearchError(ErrorKind.INVALID_INPUT, "cannot use --name with multiple files")
    inner_quiet = quiet or len(paths) > 1

    def upload(path: str) -> None:
        item_options = UploadOptions(
            display_name=options.display_name or os.path.basename(path),
            mime_type=options.mime_type,
            max_chunk_tokens=options.max_chunk_tokens,
            chunk_overlap_tokens=options.chunk_overlap_tokens,
            metadata=options.metadata,
        )
        do_upload_file(client, path, store_name, item_options, quiet=inner_quiet,
                       cancel_event=cancel_event)

    return process_batch(paths, upload, BatchOptions(
        concurrency=concurrency,
        on_progress=on_progress,
        cancel_event=cancel_event,
    ))


def do_import_files(
    resolver: NameResolver,
    file_refs: list[str],
    store_name: str,
    concurrency: int = 0,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
    quiet: bool = False,
) -> BatchResult:
    """
    Import several Files API files into one (resolved) store concurrently.

    File references are resolved inside each item so that a bad name only
    fails that item.
    """
    inner_quiet = quiet or len(file_refs) > 1

    def import_one(file_ref: str) -> None:
        file_name = resolver.resolve_file(file_ref)
        do_import_file(resolver.client, file_name, store_name, quiet=inner_quiet,
                       cancel_event=cancel_event)

    return process_batch(file_refs, import_one, BatchOptions(
        concurrency=concurrency,
        on_progress=on_progress,
        cancel_event=cancel_event,
    ))
