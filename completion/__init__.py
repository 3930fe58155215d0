"""
Completion — shell completion suggestions with a TTL cache.
"""

from .cache import TTLCache, CacheEntry
from .completer import Completer

__all__ = ["TTLCache", "CacheEntry", "Completer"]
