"""Redis read cache for ShowSet documents, implementing ICacheBackend."""

from __future__ import annotations

import redis

from showsync.core.config import RedisConfig
from showsync.core.exceptions import CacheError


class RedisCacheBackend:
    """String cache in Redis; every key is namespaced under ``prefix``.

    Connection and protocol failures surface as ``CacheError`` so the store
    can treat them as a miss.
    """

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0, prefix: str = "") -> None:
        self._prefix = prefix
        self._client = redis.Redis(host=host, port=port, db=db, decode_responses=True)

    @classmethod
    def from_config(cls, config: RedisConfig) -> RedisCacheBackend:
        return cls(host=config.host, port=config.port, db=config.db, prefix=config.key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except Exception as exc:
            raise CacheError(f"Redis GET {self._key(key)!r} failed: {exc}") from exc

    def setex(self, key: str, ttl: int, value: str) -> None:
        if ttl <= 0:
            raise CacheError(f"Cache TTL must be positive, got {ttl}")
        try:
            self._client.setex(self._key(key), ttl, value)
        except Exception as exc:
            raise CacheError(f"Redis SETEX {self._key(key)!r} failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except Exception as exc:
            raise CacheError(f"Redis DELETE {self._key(key)!r} failed: {exc}") from exc

    def ping(self) -> bool:
        """True when the server answers."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
