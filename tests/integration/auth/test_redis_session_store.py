import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core.service.auth.cache.session_store import RedisSessionStore


class AsyncIter:
    def __init__(self, items):
        self.items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.items:
            raise StopAsyncIteration
        return self.items.pop(0)


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.set = AsyncMock()
    client.get = AsyncMock(return_value="refresh-token")
    client.delete = AsyncMock(return_value=0)
    client.mget = AsyncMock(return_value=["a", None])
    client.scan_iter = MagicMock(return_value=AsyncIter(["charge:1:20261018:x", "charge:1:20261018:y"]))
    return client


@pytest.fixture
def store(redis_client):
    return RedisSessionStore(redis_client, lock_timeout_seconds=3)


@pytest.mark.asyncio
async def test_set_uses_expiry(store, redis_client):
    await store.set("session:1", "refresh-token", 604800)

    redis_client.set.assert_awaited_once_with("session:1", "refresh-token", ex=604800)


@pytest.mark.asyncio
async def test_set_expiry_at_least_one_second(store, redis_client):
    await store.set("charge:1:20261018:x", "{}", 0)

    redis_client.set.assert_awaited_once_with("charge:1:20261018:x", "{}", ex=1)


@pytest.mark.asyncio
async def test_get_and_delete(store, redis_client):
    assert await store.get("session:1") == "refresh-token"

    await store.delete("session:1")
    redis_client.delete.assert_awaited_once_with("session:1")


@pytest.mark.asyncio
async def test_keys_matching_scans(store, redis_client):
    keys = await store.keys_matching("charge:1:20261018:*")

    assert keys == {"charge:1:20261018:x", "charge:1:20261018:y"}
    redis_client.scan_iter.assert_called_once_with(match="charge:1:20261018:*")


@pytest.mark.asyncio
async def test_multi_get(store, redis_client):
    assert await store.multi_get(["k1", "k2"]) == ["a", None]
    redis_client.mget.assert_awaited_once_with(["k1", "k2"])


@pytest.mark.asyncio
async def test_multi_get_empty_skips_redis(store, redis_client):
    assert await store.multi_get([]) == []
    redis_client.mget.assert_not_awaited()


def test_lock_is_namespaced(store, redis_client):
    store.lock("session:1")

    redis_client.lock.assert_called_once_with("lock:session:1", timeout=3, blocking_timeout=3)


@pytest.mark.asyncio
async def test_errors_propagate(store, redis_client):
    """Infrastructure failures reach the caller"""
    redis_client.get.side_effect = ConnectionError("redis down")

    with pytest.raises(ConnectionError):
        await store.get("session:1")
