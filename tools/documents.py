"""
Document operations — documents are the indexed entries inside a store.

A document given by display name needs its store to be resolved; a full
fileSearchStores/.../documents/... name does not.
"""

from typing import Any

from tools.resolve import NameResolver


def do_list_documents(resolver: NameResolver, store_ref: str) -> list[Any]:
    store_name = resolver.resolve_store(store_ref)
    return resolver.client.list_documents(store_name)


def do_get_document(resolver: NameResolver, document_ref: str, store_ref: str | None = None) -> Any:
    document_name = resolver.resolve_document(document_ref, store_ref)
    return resolver.client.get_document(document_name)


def do_delete_document(
    resolver: NameResolver,
    document_ref: str,
    store_ref: str | None = None,
    force: bool = False,
) -> str:
    """Delete a document, returning its resource name."""
    document_name = resolver.resolve_document(document_ref, store_ref)
    resolver.client.delete_document(document_name, force=force)
    return document_name
