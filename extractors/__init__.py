"""
Extractors — Pure functions over API responses.

No MCP awareness, no API calls, no logging. Just transform input → output.
Easily testable with SimpleNamespace stand-ins for SDK records.
"""

from .grounding import parse_query_response
from .operations import operation_to_status
from .formatting import (
    record_to_dict,
    format_store_list,
    format_store,
    format_file_list,
    format_file,
    format_document_list,
    format_document,
    format_query_result,
    format_operation_status,
    format_progress,
    format_batch_summary,
    format_batch_failures,
)

__all__ = [
    "parse_query_response",
    "operation_to_status",
    "record_to_dict",
    "format_store_list",
    "format_store",
    "format_file_list",
    "format_file",
    "format_document_list",
    "format_document",
    "format_query_result",
    "format_operation_status",
    "format_progress",
    "format_batch_summary",
    "format_batch_failures",
]
