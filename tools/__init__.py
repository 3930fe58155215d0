"""
Tools — operations shared by the CLI and the MCP server.

Each module holds the logic for one resource; cli.py and server.py are
thin front ends over these functions. Functions raise FileSearchError;
the front ends decide how to present it.
"""

from .resolve import NameResolver
from .batch import BatchOptions, process_batch
from .poller import wait_for_operation, raise_if_failed
from .stores import do_list_stores, do_get_store, do_create_store, do_delete_store
from .files import (
    do_list_files,
    do_get_file,
    do_delete_file,
    do_upload_file,
    do_import_file,
    do_upload_files,
    do_import_files,
)
from .documents import do_list_documents, do_get_document, do_delete_document
from .query import do_query
from .operations import do_get_operation

__all__ = [
    "NameResolver", "BatchOptions", "process_batch",
    "wait_for_operation", "raise_if_failed",
    "do_list_stores", "do_get_store", "do_create_store", "do_delete_store",
    "do_list_files", "do_get_file", "do_delete_file",
    "do_upload_file", "do_import_file", "do_upload_files", "do_import_files",
    "do_list_documents", "do_get_document", "do_delete_document",
    "do_query", "do_get_operation",
]
