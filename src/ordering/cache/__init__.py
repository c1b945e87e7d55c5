"""Catalog cache factory.

Provides get_cache() / set_cache() to swap implementations:
- InMemoryCatalogCache for development and testing
- RedisCatalogCache when CACHE_URL points at Redis
"""

from ordering.cache.port import CatalogCache, product_key
from ordering.config import get_settings

_current_cache: CatalogCache | None = None


def _build_cache() -> CatalogCache:
    settings = get_settings()
    if settings.cache_url.startswith(("redis://", "rediss://")):
        from ordering.cache.redis_adapter import RedisCatalogCache

        return RedisCatalogCache(
            settings.cache_url,
            default_ttl=settings.cache_ttl_seconds,
            timeout=settings.cache_timeout,
        )
    from ordering.cache.memory_adapter import InMemoryCatalogCache

    return InMemoryCatalogCache(default_ttl=settings.cache_ttl_seconds)


def get_cache() -> CatalogCache:
    """Return the current catalog cache. Defaults to the configured adapter."""
    global _current_cache
    if _current_cache is None:
        _current_cache = _build_cache()
    return _current_cache


def set_cache(cache: CatalogCache) -> None:
    """Override the active cache (useful for tests)."""
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    """Reset to the configured cache."""
    global _current_cache
    _current_cache = None


__all__ = ["CatalogCache", "get_cache", "product_key", "reset_cache", "set_cache"]
