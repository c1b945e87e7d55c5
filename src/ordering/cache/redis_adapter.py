"""Redis-backed catalog cache for production."""

import json

import redis
import structlog

from ordering.cache.port import CatalogCache

logger = structlog.get_logger(__name__)


class RedisCatalogCache(CatalogCache):
    """Stores JSON snapshots in Redis with a socket timeout on every call.

    The cache is never the source of truth: a Redis failure on read is a
    miss, and a failed write drops the key so the next read goes to the
    store. Both are logged.
    """

    def __init__(self, url: str, default_ttl: int | None = None, timeout: float = 2.0) -> None:
        self.default_ttl = default_ttl
        self._client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    def get(self, key: str) -> dict | None:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return None
        return json.loads(raw) if raw else None

    def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        try:
            self._client.set(key, json.dumps(value, default=str), ex=ttl or None)
        except redis.RedisError as exc:
            logger.error("cache_write_failed", key=key, error=str(exc))
            self.invalidate(key)

    def invalidate(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            logger.error("cache_invalidate_failed", key=key, error=str(exc))
