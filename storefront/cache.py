"""Caching helpers with Redis primary and a no-op stand-in."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import redis

from .config import Settings

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def delete(self, *keys: str) -> None: ...


@dataclass
class RedisCache:
    client: redis.Redis

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.client.setex(key, ttl, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set failed: %s", exc)

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("Redis delete failed: %s", exc)


class NullCache:
    """Stand-in used when Redis is disabled or unreachable: every lookup misses."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        return None

    def delete(self, *keys: str) -> None:
        return None


def _redis_client(settings: Settings) -> redis.Redis:
    timeout = settings.redis_connect_timeout
    if settings.redis_url:
        return redis.Redis.from_url(
            settings.redis_url,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        decode_responses=False,
    )


def connect_cache(settings: Settings) -> CacheBackend | None:
    """Return a live Redis cache, or None when Redis is disabled or down."""

    if not settings.redis_enabled:
        logger.warning("Redis is disabled (REDIS_ENABLED=false)")
        return None
    try:
        client = _redis_client(settings)
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis not available (%s); caching disabled", exc)
        return None
    logger.info("Using Redis cache at %s", settings.redis_url or f"{settings.redis_host}:{settings.redis_port}")
    return RedisCache(client)
