"""
Infrastructure Caches
"""

from .request_cache import RequestReadCache, CachedObjectClient

__all__ = ["RequestReadCache", "CachedObjectClient"]
