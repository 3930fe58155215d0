"""
Gemini API client initialization.

Shared by all adapters. Builds google-genai clients keyed by API key and
timeout. Uses lru_cache for thread-safe caching.

Regular commands get no client-side timeout (uploads and queries can be
slow); completion lookups pass COMPLETION_TIMEOUT_SECONDS so the shell never
hangs on a stalled connection.
"""

from functools import lru_cache

from google import genai
from google.genai import types

from config import API_KEY_MISSING_MESSAGE
from models import ErrorKind, FileSearchError

__all__ = [
    "get_genai_client",
    "clear_client_cache",
]


def _http_options(timeout_seconds: float | None) -> types.HttpOptions | None:
    if timeout_seconds is None:
        return None
    # HttpOptions.timeout is in milliseconds
    return types.HttpOptions(timeout=int(timeout_seconds * 1000))


@lru_cache(maxsize=4)
def get_genai_client(api_key: str, timeout_seconds: float | None = None) -> genai.Client:
    """Get a Gemini API client (cached per key and timeout, thread-safe)."""
    if not api_key:
        raise FileSearchError(ErrorKind.AUTH_REQUIRED, API_KEY_MISSING_MESSAGE)
    options = _http_options(timeout_seconds)
    if options is None:
        return genai.Client(api_key=api_key)
    return genai.Client(api_key=api_key, http_options=options)


def clear_client_cache() -> None:
    """Clear cached clients. Useful for testing or after key rotation."""
    get_genai_client.cache_clear()
