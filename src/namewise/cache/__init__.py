"""Result caching."""

from .keys import derive_cache_key
from .store import CacheEntry, ResultCache

__all__ = ["CacheEntry", "ResultCache", "derive_cache_key"]
