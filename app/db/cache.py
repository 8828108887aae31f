"""
Stockage clé/valeur Redis pour le cache des annonces.

Toute erreur Redis (connexion, timeout, réponse invalide) est convertie en
CacheUnavailableError, que le ListingCache absorbe.
"""
from typing import Optional
import logging

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from app.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisCache:
    """get / set avec TTL / delete / delete par préfixe"""

    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout: float = 2.0) -> "RedisCache":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        logger.info("✓ Client Redis configuré")
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(str(e)) from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.setex(key, ttl, value)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(str(e)) from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(str(e)) from e

    async def delete_prefix(self, prefix: str) -> int:
        """Supprime toutes les clés commençant par prefix (SCAN, pas KEYS)"""
        try:
            keys = [key async for key in self.client.scan_iter(match=f"{prefix}*", count=500)]
            if not keys:
                return 0
            return await self.client.delete(*keys)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(str(e)) from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Client Redis fermé")
