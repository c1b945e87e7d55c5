"""In-process catalog cache for development and testing."""

import time

from ordering.cache.port import CatalogCache


class InMemoryCatalogCache(CatalogCache):
    """Dictionary-backed cache with per-key expiry."""

    def __init__(self, default_ttl: int | None = None) -> None:
        self.default_ttl = default_ttl
        self._entries: dict[str, tuple[dict, float | None]] = {}

    def get(self, key: str) -> dict | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return dict(value)

    def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        self._entries[key] = (dict(value), expires_at)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
