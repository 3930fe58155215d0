"""
Store operations — list, get, create, delete.

Store references may be display names or fileSearchStores/... names.
"""

from typing import Any

from adapters.gemini import GeminiClient
from tools.resolve import NameResolver


def do_list_stores(client: GeminiClient) -> list[Any]:
    return client.list_stores()


def do_get_store(resolver: NameResolver, store_ref: str) -> Any:
    store_name = resolver.resolve_store(store_ref)
    return resolver.client.get_store(store_name)


def do_create_store(client: GeminiClient, display_name: str) -> Any:
    return client.create_store(display_name)


def do_delete_store(resolver: NameResolver, store_ref: str, force: bool = False) -> str:
    """
    Delete a store, returning its resource name.

    No local emptiness check: the service rejects deleting a non-empty
    store unless force is set.
    """
    store_name = resolver.resolve_store(store_ref)
    resolver.client.delete_store(store_name, force=force)
    return store_name
