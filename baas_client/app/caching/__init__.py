"""
Query caching package.

Deduplicates concurrent identical calls and keeps results coherent through
tag-based invalidation. Only QueryCache reads or writes cache state.
"""

from .keys import cache_key
from .query_cache import CacheEntry, EntryState, QueryCache, QuerySubscription

__all__ = ["CacheEntry", "EntryState", "QueryCache", "QuerySubscription", "cache_key"]
