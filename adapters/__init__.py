"""
Adapters — thin wrappers over the google-genai SDK.

No business logic: each call maps to one API request (listings follow
pagination to the end) and raises FileSearchError on failure.
"""

from .gemini import GeminiClient
from .services import get_genai_client, clear_client_cache

__all__ = ["GeminiClient", "get_genai_client", "clear_client_cache"]
