"""Redis-backed response cache.

Best-effort: every failure is logged and treated as a miss so a cache outage
never fails a request. Writes to cached resources delete the affected keys.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis
from fastapi import Request

from coalition.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 2.0
DEFAULT_SOCKET_TIMEOUT_SECONDS = 2.0


class CacheKeys:
    @staticmethod
    def page_content(page: str) -> str:
        return f"page-content:{page}"

    @staticmethod
    def page_content_all() -> str:
        return "page-content:*"

    @staticmethod
    def announcements_published() -> str:
        return "announcements:published"

    @staticmethod
    def announcements_all() -> str:
        return "announcements:*"

    @staticmethod
    def announcement_by_slug(slug: str) -> str:
        return f"announcement:slug:{slug}"

    @staticmethod
    def tags() -> str:
        return "tags:all"


class CacheService:
    """JSON cache over an async Redis client; a ``None`` client disables caching."""

    def __init__(self, client: "redis.Redis | None"):
        self.client = client

    @classmethod
    def from_url(cls, url: str | None) -> "CacheService":
        if not url:
            return cls(None)
        client = redis.Redis.from_url(
            url,
            socket_connect_timeout=DEFAULT_CONNECT_TIMEOUT_SECONDS,
            socket_timeout=DEFAULT_SOCKET_TIMEOUT_SECONDS,
            decode_responses=True,
        )
        return cls(client)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def get(self, key: str) -> Any | None:
        if not self.client:
            return None
        try:
            data = await self.client.get(key)
        except redis.RedisError as e:
            logger.warning("Cache get error for key %s: %s", key, e)
            return None
        if data is None:
            return None
        try:
            return json.loads(data)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if not self.client:
            return
        try:
            payload = json.dumps(value, default=str)
            if ttl:
                await self.client.set(key, payload, ex=ttl)
            else:
                await self.client.set(key, payload)
        except redis.RedisError as e:
            logger.warning("Cache set error for key %s: %s", key, e)

    async def delete(self, *keys: str) -> None:
        if not self.client or not keys:
            return
        try:
            await self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning("Cache delete error for keys %s: %s", keys, e)

    async def delete_pattern(self, pattern: str) -> int:
        if not self.client:
            return 0
        try:
            keys = [key async for key in self.client.scan_iter(match=pattern, count=500)]
            if keys:
                await self.client.delete(*keys)
            return len(keys)
        except redis.RedisError as e:
            logger.warning("Cache delete pattern error for %s: %s", pattern, e)
            return 0

    async def clear(self) -> None:
        if not self.client:
            return
        try:
            await self.client.flushdb()
        except redis.RedisError as e:
            logger.warning("Cache clear error: %s", e)

    async def ping(self) -> bool:
        if not self.client:
            return False
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()


def build_cache() -> CacheService:
    settings = get_settings()
    return CacheService.from_url(settings.redis_url if settings.cache_enabled else None)


def get_cache(request: Request) -> CacheService:
    """FastAPI dependency: the process-wide cache created at startup."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        cache = build_cache()
        request.app.state.cache = cache
    return cache
