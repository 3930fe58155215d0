"""
Shared test helpers for file-search.

SDK records are stood in for by SimpleNamespace objects carrying the same
attribute names as google.genai.types (name, display_name, ...). The fake
gateway is a MagicMock specced on GeminiClient so a renamed adapter method
fails loudly instead of returning a fresh mock.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Iterable, Iterator
from unittest.mock import MagicMock

from adapters.gemini import GeminiClient


class FakePager:
    """Iterates items page by page like google.genai.pagers.Pager.

    pages_fetched counts pages actually consumed, so tests can assert
    that a listing was exhausted rather than cut short.
    """

    def __init__(self, pages: list[list[Any]]):
        self._pages = pages
        self.pages_fetched = 0

    def __iter__(self) -> Iterator[Any]:
        for page in self._pages:
            self.pages_fetched += 1
            yield from page


class FakeClock:
    """Manually advanced monotonic clock. Pass .advance as a sleep function."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_store(name: str, display_name: str | None = None, **extra: Any) -> SimpleNamespace:
    fields: dict[str, Any] = {
        "name": name,
        "display_name": display_name,
        "create_time": None,
        "update_time": None,
        "active_documents_count": None,
        "pending_documents_count": None,
        "failed_documents_count": None,
        "size_bytes": None,
    }
    fields.update(extra)
    return SimpleNamespace(**fields)


def make_file(name: str, display_name: str | None = None, **extra: Any) -> SimpleNamespace:
    fields: dict[str, Any] = {
        "name": name,
        "display_name": display_name,
        "uri": None,
        "mime_type": None,
        "size_bytes": None,
        "create_time": None,
        "update_time": None,
        "state": None,
    }
    fields.update(extra)
    return SimpleNamespace(**fields)


def make_document(name: str, display_name: str | None = None, **extra: Any) -> SimpleNamespace:
    fields: dict[str, Any] = {
        "name": name,
        "display_name": display_name,
        "state": None,
        "size_bytes": None,
        "mime_type": None,
        "create_time": None,
        "update_time": None,
        "custom_metadata": None,
    }
    fields.update(extra)
    return SimpleNamespace(**fields)


def make_operation(
    name: str = "fileSearchStores/s1/operations/op1",
    done: bool = False,
    error: dict[str, Any] | None = None,
    parent: str | None = None,
    document_name: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> SimpleNamespace:
    response = None
    if parent or document_name:
        response = SimpleNamespace(parent=parent, document_name=document_name)
    return SimpleNamespace(name=name, done=done, error=error,
                           metadata=metadata, response=response)


def fake_gateway(
    stores: Iterable[Any] = (),
    files: Iterable[Any] = (),
    documents: dict[str, list[Any]] | None = None,
) -> MagicMock:
    """A GeminiClient stand-in serving fixed listings."""
    gateway = MagicMock(spec=GeminiClient)
    gateway.list_stores.return_value = list(stores)
    gateway.list_files.return_value = list(files)
    docs = documents or {}
    gateway.list_documents.side_effect = lambda store_name: list(docs.get(store_name, []))
    return gateway
