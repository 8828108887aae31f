# tests/test_infrastructure.py
"""
Tests du stockage Redis et des tâches détachées
Exécuter: pytest tests/test_infrastructure.py -v
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.errors import CacheUnavailableError
from app.db import RedisCache
from app.services.tasks import DetachedTasks


def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock()
    client.delete = AsyncMock(return_value=0)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


# ====================================
# REDIS
# ====================================

async def test_set_uses_ttl():
    client = redis_client()
    await RedisCache(client).set("property:1", "{}", 300)
    client.setex.assert_awaited_once_with("property:1", 300, "{}")


async def test_redis_errors_become_cache_unavailable():
    client = redis_client()
    client.get.side_effect = RedisConnectionError("refused")

    with pytest.raises(CacheUnavailableError):
        await RedisCache(client).get("property:1")


async def test_delete_prefix_scans_keys():
    client = redis_client()
    client.delete.return_value = 2

    async def scan_iter(match, count):
        assert match == "properties:*"
        for key in ("properties:a", "properties:b"):
            yield key

    client.scan_iter = scan_iter

    assert await RedisCache(client).delete_prefix("properties:") == 2
    client.delete.assert_awaited_once_with("properties:a", "properties:b")


async def test_delete_prefix_without_keys():
    client = redis_client()

    async def scan_iter(match, count):
        return
        yield

    client.scan_iter = scan_iter

    assert await RedisCache(client).delete_prefix("properties:") == 0
    client.delete.assert_not_awaited()


async def test_ping_reports_failure():
    client = redis_client()
    client.ping.side_effect = RedisConnectionError("down")
    assert await RedisCache(client).ping() is False


# ====================================
# TÂCHES DÉTACHÉES
# ====================================

async def test_spawn_does_not_block_and_drain_waits():
    tasks = DetachedTasks()
    done = []

    async def work():
        await asyncio.sleep(0.01)
        done.append(True)

    tasks.spawn(work(), name="work")
    assert done == []
    assert tasks.pending == 1

    await tasks.drain()
    assert done == [True]
    assert tasks.pending == 0


async def test_failed_task_is_swallowed():
    tasks = DetachedTasks()

    async def fail():
        raise RuntimeError("boom")

    tasks.spawn(fail())
    await tasks.drain()
    assert tasks.pending == 0


async def test_drain_waits_for_nested_tasks():
    tasks = DetachedTasks()
    done = []

    async def inner():
        done.append("inner")

    async def outer():
        tasks.spawn(inner())

    tasks.spawn(outer())
    await tasks.drain()
    assert done == ["inner"]
