"""In-memory stores used while a build runs."""

from .expiring_cache import CacheEntry, ExpiringCache

__all__ = ["CacheEntry", "ExpiringCache"]
