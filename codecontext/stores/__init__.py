"""Persistent stores used across runs."""

from .parse_cache import ParseCache, cache_key

__all__ = ["ParseCache", "cache_key"]
