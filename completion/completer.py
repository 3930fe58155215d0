"""
Shell completion suggestions backed by the TTL cache.

Completion must never break the shell: every failure (no API key,
network error, timeout, unknown store) degrades to an empty suggestion
list. Model names fall back to the static list in config.
"""

import threading
from typing import Callable

from adapters.gemini import GeminiClient
from completion.cache import TTLCache
from config import COMPLETION_TIMEOUT_SECONDS, DEFAULT_CACHE_TTL_SECONDS, MODEL_LIST
from logging_config import logger
from tools.resolve import NameResolver

ClientFactory = Callable[[str, float], GeminiClient]


def _default_client_factory(api_key: str, timeout_seconds: float) -> GeminiClient:
    return GeminiClient.from_api_key(api_key, timeout_seconds)


class Completer:
    """
    Suggests display names for stores, files and documents, and model names.

    The client is built lazily on first lookup with a short timeout so a
    stalled connection cannot hang tab completion.
    """

    def __init__(
        self,
        api_key: str | None,
        enabled: bool = True,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        client_factory: ClientFactory = _default_client_factory,
        cache: TTLCache | None = None,
    ):
        self.api_key = api_key
        self.enabled = enabled and bool(api_key)
        self.cache = cache or TTLCache(cache_ttl)
        self._client_factory = client_factory
        self._client: GeminiClient | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> GeminiClient:
        with self._client_lock:
            if self._client is None:
                assert self.api_key is not None
                self._client = self._client_factory(self.api_key, COMPLETION_TIMEOUT_SECONDS)
            return self._client

    def _cached(self, key: str, fetch: Callable[[GeminiClient], list[str]]) -> list[str]:
        values, found = self.cache.get(key)
        if found and values is not None:
            return values
        try:
            values = fetch(self._get_client())
        except Exception as e:
            logger.debug(f"Completion lookup {key!r} failed: {e}")
            return []
        self.cache.set(key, values)
        return values

    def store_names(self) -> list[str]:
        if not self.enabled:
            return []
        return self._cached(
            "stores",
            lambda client: [s.display_name for s in client.list_stores() if s.display_name],
        )

    def file_names(self) -> list[str]:
        if not self.enabled:
            return []
        return self._cached(
            "files",
            lambda client: [f.display_name for f in client.list_files() if f.display_name],
        )

    def document_names(self, store_ref: str) -> list[str]:
        """Document display names within a store given by display name or ID."""
        if not self.enabled or not store_ref:
            return []

        def fetch(client: GeminiClient) -> list[str]:
            store_name = NameResolver(client).resolve_store(store_ref)
            return [d.display_name for d in client.list_documents(store_name) if d.display_name]

        return self._cached("docs:" + store_ref, fetch)

    def model_names(self) -> list[str]:
        """Model names without the "models/" prefix, or the static list."""
        if not self.enabled:
            return list(MODEL_LIST)

        def fetch(client: GeminiClient) -> list[str]:
            return [m.name.removeprefix("models/") for m in client.list_models() if m.name]

        names = self._cached("models", fetch)
        return names or list(MODEL_LIST)
