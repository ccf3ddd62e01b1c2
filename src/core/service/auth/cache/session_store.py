from typing import AsyncContextManager, Iterable, List, Optional, Set

from redis.asyncio import Redis

from src.core.logger.logger import get_logger
from src.core.service.account.interfaces import SessionStore
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class RedisSessionStore(SessionStore):
    """Redis-backed key-value store for session and charge request keys"""

    def __init__(self, redis_client: Redis, lock_timeout_seconds: Optional[int] = None):
        self.redis = redis_client
        self.lock_key_prefix = "lock:"
        self.lock_timeout_seconds = lock_timeout_seconds or settings.LOCK_TIMEOUT_SECONDS

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.redis.set(key, value, ex=max(int(ttl_seconds), 1))
        except Exception as e:
            logger.error(
                "Failed to set key",
                extra={"key": key, "error": str(e)}
            )
            raise

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(
                "Failed to get key",
                extra={"key": key, "error": str(e)}
            )
            raise

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except Exception as e:
            logger.error(
                "Failed to delete key",
                extra={"key": key, "error": str(e)}
            )
            raise

    async def keys_matching(self, pattern: str) -> Set[str]:
        """Enumerate keys with SCAN so large keyspaces do not block Redis"""
        try:
            return {key async for key in self.redis.scan_iter(match=pattern)}
        except Exception as e:
            logger.error(
                "Failed to scan keys",
                extra={"pattern": pattern, "error": str(e)}
            )
            raise

    async def multi_get(self, keys: Iterable[str]) -> List[Optional[str]]:
        keys = list(keys)
        if not keys:
            return []
        try:
            return await self.redis.mget(keys)
        except Exception as e:
            logger.error(
                "Failed to read keys",
                extra={"key_count": len(keys), "error": str(e)}
            )
            raise

    def lock(self, name: str) -> AsyncContextManager:
        """Distributed lock, so serialisation holds across worker processes"""
        return self.redis.lock(
            f"{self.lock_key_prefix}{name}",
            timeout=self.lock_timeout_seconds,
            blocking_timeout=self.lock_timeout_seconds
        )
