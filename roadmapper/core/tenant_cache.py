"""
Tenant Row Cache

Caches tenant rows in Redis so tenant resolution does not hit the database
on every request.

TRADEOFF: Redis being down must not take the API down. Every Redis error is
logged and treated as a cache miss; the resolver then reads the database.
Plan-tier changes invalidate the cached row once they commit, other
staleness is bounded by the TTL.
"""
import json
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from roadmapper.config import Settings
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)


class TenantCache:
    """Tenant rows keyed by id and by domain name."""

    def __init__(self, client: "redis.Redis", ttl_seconds: int):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["TenantCache"]:
        if settings.TENANT_CACHE_TTL_SECONDS <= 0:
            logger.info("Tenant cache disabled")
            return None
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client, settings.TENANT_CACHE_TTL_SECONDS)

    @staticmethod
    def _id_key(tenant_id: str) -> str:
        return f"tenant:id:{tenant_id}"

    @staticmethod
    def _domain_key(domain: str) -> str:
        return f"tenant:domain:{domain}"

    async def _get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.warning(f"Tenant cache read failed, using database: {e}")
            return None
        return json.loads(raw) if raw else None

    async def get_by_id(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        return await self._get(self._id_key(tenant_id))

    async def get_by_domain(self, domain: str) -> Optional[Dict[str, Any]]:
        return await self._get(self._domain_key(domain))

    async def store(self, tenant: Dict[str, Any]) -> None:
        payload = json.dumps(tenant, default=str)
        try:
            async with self.client.pipeline(transaction=False) as pipe:
                pipe.set(self._id_key(tenant["id"]), payload, ex=self.ttl_seconds)
                pipe.set(self._domain_key(tenant["domain_name"]), payload, ex=self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            logger.warning(f"Tenant cache write failed: {e}")

    async def invalidate(self, tenant: Dict[str, Any]) -> None:
        try:
            await self.client.delete(self._id_key(tenant["id"]), self._domain_key(tenant["domain_name"]))
        except RedisError as e:
            # stale entries expire with the TTL
            logger.warning(f"Tenant cache invalidation failed: {e}")

    async def close(self) -> None:
        await self.client.aclose()
