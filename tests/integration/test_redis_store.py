"""真实 Redis 上的端到端流程集成测试。

测试覆盖：
- 扫描写入 → 订阅回填 → 新单集分发 → 动态流读取
- 取消订阅清理动态流
- 单集先到先得、最新一集指针
- 活跃分区切换

使用方法：
    # 需要本地 Redis（默认 localhost:6379，使用 DB 15）
    uv run pytest tests/integration/test_redis_store.py -v -m integration
"""

import asyncio
import os
from collections.abc import AsyncGenerator

import pytest

from popcorn.core.domain.ports.kv import KVConflictError
from popcorn.core.infrastructure.health import HealthStatus
from popcorn.core.infrastructure.redis.client import RedisClient, RedisUnavailableError
from popcorn.core.infrastructure.redis.keys import RedisKeys
from popcorn.runtime import PopcornRuntime, PopcornRuntimeFactory

# 标记为集成测试
pytestmark = [pytest.mark.integration, pytest.mark.anyio]

TEST_REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
async def redis_client() -> AsyncGenerator[RedisClient, None]:
    """连接测试 Redis，不可用时跳过。"""
    client = RedisClient(url=TEST_REDIS_URL)
    try:
        async with client.ensure_available(timeout=2.0):
            await client.client.flushdb()
            yield client
            await client.client.flushdb()
    except RedisUnavailableError as e:
        pytest.skip(f"Redis not available: {e}")
    finally:
        await client.close()


@pytest.fixture
def store(redis_client: RedisClient) -> PopcornRuntime:
    return PopcornRuntimeFactory(kv=redis_client).create()


class TestRedisClient:
    """RedisClient 基础能力测试。"""

    async def test_health_check(self, redis_client):
        result = await redis_client.health_check()

        assert result.status == HealthStatus.OK
        assert result.connected is True

    async def test_server_time_is_milliseconds(self, redis_client):
        first = await redis_client.time()
        second = await redis_client.time()

        assert first > 1_600_000_000_000
        assert second >= first

    async def test_transaction_applies_all_commands(self, redis_client):
        async with redis_client.transaction() as batch:
            batch.sadd("a", "1")
            batch.hset("h", mapping={"f": "v"})

        assert await redis_client.smembers("a") == {"1"}
        assert await redis_client.hgetall("h") == {"f": "v"}

    async def test_watch_commits_when_untouched(self, redis_client):
        async with redis_client.watch("k") as txn:
            assert await txn.exists("k") == 0
            batch = txn.multi()
            batch.hset("k", mapping={"f": "v"})

        assert await redis_client.hgetall("k") == {"f": "v"}

    async def test_watch_conflict_raises(self, redis_client):
        with pytest.raises(KVConflictError):
            async with redis_client.watch("k") as txn:
                await txn.exists("k")
                # 另一个连接在 EXEC 之前修改了被监视的 key
                await redis_client.set("k", "other")
                batch = txn.multi()
                batch.sadd("s", "1")

        assert await redis_client.exists("s") == 0

    async def test_watch_without_multi_writes_nothing(self, redis_client):
        async with redis_client.watch("k") as txn:
            await txn.hgetall("k")

        assert await redis_client.exists("k") == 0

    async def test_transaction_discarded_on_error(self, redis_client):
        with pytest.raises(RuntimeError):
            async with redis_client.transaction() as batch:
                batch.sadd("a", "1")
                raise RuntimeError("abort")

        assert await redis_client.exists("a") == 0


class TestScanToFeedFlow:
    """扫描 → 订阅 → 分发 → 读取 完整链路。"""

    async def test_full_flow(self, store, redis_client):
        await store.scans.log_scan()
        await store.catalog.save_show(
            {
                "imdb_id": "tt001",
                "active": True,
                "title": "Popcorn Nights",
                "genres": ["drama"],
                "latest_episode": {"sien": 1, "title": "Pilot"},
            }
        )

        await store.subscriptions.subscribe("alice", "tt001")
        feed = await store.feeds.get_feed("alice")
        assert [(entry.sien, entry.episode_title) for entry in feed] == [(1, "Pilot")]

        result = await store.catalog.save_show(
            {
                "imdb_id": "tt001",
                "active": True,
                "title": "Popcorn Nights",
                "latest_episode": {"sien": 2, "title": "Second Show"},
            }
        )
        assert result.new_episode is not None
        await store.feeds.fan_out_episode("tt001", result.new_episode)

        feed = await store.feeds.get_feed("alice")
        assert [entry.sien for entry in feed] == [2, 1]
        assert all(entry.title == "Popcorn Nights" for entry in feed)

        fields = await redis_client.hgetall(RedisKeys.show("tt001"))
        assert set(fields) == {"id", "active", "title", "timestamp"}
        assert fields["active"] == "true"

    async def test_unsubscribe_purges_feed(self, store):
        await store.catalog.save_show(
            {"id": "tt1", "active": True, "latest_episode": {"sien": 3}}
        )
        await store.catalog.save_show(
            {"id": "tt10", "active": True, "latest_episode": {"sien": 3}}
        )
        await store.subscriptions.subscribe("alice", "tt1")
        await store.subscriptions.subscribe("alice", "tt10")

        await store.subscriptions.unsubscribe("alice", "tt1")

        feed = await store.feeds.get_feed("alice")
        assert [entry.show_id for entry in feed] == ["tt10"]
        assert await store.subscriptions.list_subscribers("tt1") == []


class TestCatalogOnRedis:
    """剧集 / 单集存储在真实 Redis 上的行为。"""

    async def test_episode_first_write_wins(self, store):
        await store.catalog.put_episode("tt001", {"sien": 4, "title": "Original"})
        second = await store.catalog.put_episode("tt001", {"sien": 4, "title": "Other"})

        assert second is None
        episode = await store.catalog.get_episode("tt001", 4)
        assert episode.title == "Original"

    async def test_latest_pointer(self, store):
        for sien in (2, 7, 5):
            await store.catalog.put_episode("tt001", {"sien": sien})

        latest = await store.catalog.get_latest_episode("tt001")
        assert latest.sien == 7
        assert await store.catalog.list_episode_siens("tt001") == [2, 5, 7]

    async def test_concurrent_writes(self, store):
        await store.catalog.put_episode("tt001", {"sien": 4})

        results = await asyncio.gather(
            store.catalog.put_episode("tt001", {"sien": 6, "title": "Six"}),
            store.catalog.put_episode("tt001", {"sien": 5, "title": "Five"}),
            store.catalog.put_episode("tt001", {"sien": 6, "title": "Other six"}),
        )

        assert sum(result is not None for result in results) == 2
        latest = await store.catalog.get_latest_episode("tt001")
        assert latest.sien == 6
        stored = await store.catalog.get_episode("tt001", 6)
        assert latest.title == stored.title

    async def test_partition_toggle(self, store, redis_client):
        await store.catalog.set_show_active("tt001", True)
        await store.catalog.set_show_active("tt001", False)

        assert await redis_client.smembers(RedisKeys.ACTIVE_SHOWS) == set()
        assert await redis_client.smembers(RedisKeys.INACTIVE_SHOWS) == {"tt001"}
