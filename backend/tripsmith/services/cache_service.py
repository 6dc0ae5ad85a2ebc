"""Cache layer — TTL'd key/value store that gates provider calls and stores itineraries."""

import json
import logging
import time
from typing import Any, Callable

import redis.asyncio as redis

from tripsmith.config import settings

logger = logging.getLogger(__name__)

# TTLs in seconds
TTL_FLIGHTS = settings.cache_ttl_flights        # 15 minutes
TTL_HOTELS = settings.cache_ttl_hotels          # 30 minutes
TTL_MENTIONS = settings.cache_ttl_mentions      # 24 hours
TTL_PLACES = settings.cache_ttl_places          # 30 days
TTL_ITINERARY = settings.cache_ttl_itinerary    # 7 days

# Prefix on every backend key written by CacheService
KEY_NAMESPACE = "tripsmith:"


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items() if v is not None}
    if isinstance(value, (set, frozenset)):
        return sorted(_normalize(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def cache_key(kind: str, params: dict) -> str:
    """Build a deterministic key: None values dropped, keys sorted at every level."""
    payload = json.dumps(_normalize(params), sort_keys=True, separators=(",", ":"), default=str)
    return f"{kind}:{payload}"


class MemoryBackend:
    """In-process store used when no Redis URL is configured."""

    def __init__(self):
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, raw: str, ttl: int) -> bool:
        self._store[key] = raw
        return True

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._store if k.startswith(prefix)]

    async def close(self):
        self._store.clear()


class RedisBackend:
    """Redis store; connection is established lazily and retried on the next call."""

    def __init__(self, url: str):
        self._url = url
        self._redis: redis.Redis | None = None

    async def _get_redis(self) -> redis.Redis | None:
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self._url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                return None
        return self._redis

    async def get(self, key: str) -> str | None:
        r = await self._get_redis()
        if r is None:
            return None
        return await r.get(key)

    async def set(self, key: str, raw: str, ttl: int) -> bool:
        r = await self._get_redis()
        if r is None:
            return False
        await r.set(key, raw, ex=ttl)
        return True

    async def delete(self, key: str) -> bool:
        r = await self._get_redis()
        if r is None:
            return False
        return bool(await r.delete(key))

    async def keys(self, prefix: str = "") -> list[str]:
        r = await self._get_redis()
        if r is None:
            return []
        return [k async for k in r.scan_iter(match=f"{prefix}*")]

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None


class CacheService:
    """Envelope cache with absolute expiry checked on read.

    Values are stored as ``{"value": ..., "expires_at": epoch_seconds}``, so expiry
    behaves the same on every backend. Every backend key carries ``namespace``;
    the purge job only ever looks at keys under it. Backend failures are logged
    and read as a miss; callers never depend on the cache for correctness.
    """

    def __init__(
        self,
        backend=None,
        clock: Callable[[], float] | None = None,
        namespace: str = KEY_NAMESPACE,
    ):
        self._backend = backend or MemoryBackend()
        self._clock = clock or time.time
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss, expiry, or error."""
        full_key = self._key(key)
        try:
            raw = await self._backend.get(full_key)
            if raw is None:
                return None
            envelope = json.loads(raw)
            if self._clock() > envelope["expires_at"]:
                await self._backend.delete(full_key)
                return None
            return envelope["value"]
        except Exception as e:
            logger.warning(f"Cache read failed for {full_key[:80]}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store value until now + ttl. Returns False on error."""
        full_key = self._key(key)
        try:
            raw = json.dumps(
                {"value": value, "expires_at": self._clock() + ttl},
                default=str,
            )
            return await self._backend.set(full_key, raw, ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {full_key[:80]}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        full_key = self._key(key)
        try:
            return await self._backend.delete(full_key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {full_key[:80]}: {e}")
            return False

    async def purge_expired(self) -> int:
        """Remove expired entries under our namespace. Returns the number removed.

        Values that are not our envelope are left alone.
        """
        try:
            keys = await self._backend.keys(self._namespace)
        except Exception as e:
            logger.warning(f"Cache purge could not list keys: {e}")
            return 0

        removed = 0
        now = self._clock()
        for key in keys:
            try:
                raw = await self._backend.get(key)
                if raw is None:
                    continue
                try:
                    expires_at = float(json.loads(raw)["expires_at"])
                except (ValueError, KeyError, TypeError):
                    logger.debug(f"Cache purge skipping non-envelope value at {key[:80]}")
                    continue
                if now > expires_at and await self._backend.delete(key):
                    removed += 1
            except Exception as e:
                logger.warning(f"Cache purge failed for {key[:80]}: {e}")
        return removed

    # Typed helpers

    def itinerary_key(self, fingerprint: dict) -> str:
        return cache_key("itinerary", fingerprint)

    def itinerary_id_key(self, itinerary_id: str) -> str:
        return f"itinerary_id:{itinerary_id}"

    async def close(self):
        await self._backend.close()


def _default_backend():
    if settings.redis_url:
        return RedisBackend(settings.redis_url)
    return MemoryBackend()


cache_service = CacheService(_default_backend())
