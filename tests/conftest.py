"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（使用内存 KV，不依赖外部服务）
- integration/: 集成测试（需要真实 Redis）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/

    # 只运行集成测试（需要 Docker）
    uv run pytest tests/integration/ -m integration
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import pytest
from anyio.lowlevel import checkpoint

from popcorn.core.config import Settings
from popcorn.core.domain.ports.kv import KVConflictError
from popcorn.runtime import PopcornRuntime, PopcornRuntimeFactory

# ============================================
# 内存 KV 实现
# ============================================


class InMemoryBatch:
    """In-memory MULTI batch: commands are queued and applied on exit."""

    def __init__(self) -> None:
        self.commands: list[tuple[str, tuple[Any, ...]]] = []

    def hset(
        self,
        name: str,
        key: str | None = None,
        value: str | None = None,
        mapping: Mapping[str, str] | None = None,
    ) -> "InMemoryBatch":
        fields = dict(mapping or {})
        if key is not None:
            fields[key] = value
        self.commands.append(("hset", (name, fields)))
        return self

    def sadd(self, name: str, *values: str) -> "InMemoryBatch":
        self.commands.append(("sadd", (name, *values)))
        return self

    def srem(self, name: str, *values: str) -> "InMemoryBatch":
        self.commands.append(("srem", (name, *values)))
        return self

    def delete(self, *names: str) -> "InMemoryBatch":
        self.commands.append(("delete", names))
        return self


class InMemoryWatch:
    """In-memory WATCH handle: reads yield to other tasks before answering."""

    def __init__(self, kv: InMemoryKVClient) -> None:
        self.kv = kv
        self.batch: InMemoryBatch | None = None

    async def exists(self, *keys: str) -> int:
        await checkpoint()
        return await self.kv.exists(*keys)

    async def hgetall(self, key: str) -> dict[str, str]:
        await checkpoint()
        return await self.kv.hgetall(key)

    def multi(self) -> InMemoryBatch:
        self.batch = InMemoryBatch()
        return self.batch


class InMemoryKVClient:
    """In-memory KVClient for tests, following Redis semantics."""

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.sets: dict[str, set[str]] = {}
        self.now_ms = 1_700_000_000_000
        self.calls: list[str] = []
        self.transactions = 0
        self.conflicts = 0
        # 每个 key 的写入版本号，用于模拟 WATCH
        self.versions: dict[str, int] = {}

    def set_time(self, time_ms: int) -> None:
        """下一次 time() 返回 time_ms。"""
        self.now_ms = time_ms - 1

    async def get(self, key: str) -> str | None:
        self.calls.append("get")
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.calls.append("set")
        self.strings[key] = str(value)
        self._touch(key)
        return True

    async def delete(self, *keys: str) -> int:
        self.calls.append("delete")
        return self._delete(*keys)

    async def exists(self, *keys: str) -> int:
        self.calls.append("exists")
        return sum(
            1
            for key in keys
            if key in self.strings or key in self.hashes or key in self.sets
        )

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        self.calls.append("hset")
        return self._hset(key, dict(mapping))

    async def hgetall(self, key: str) -> dict[str, str]:
        self.calls.append("hgetall")
        return dict(self.hashes.get(key, {}))

    async def sadd(self, key: str, *members: str) -> int:
        self.calls.append("sadd")
        return self._sadd(key, *members)

    async def srem(self, key: str, *members: str) -> int:
        self.calls.append("srem")
        return self._srem(key, *members)

    async def smembers(self, key: str) -> set[str]:
        self.calls.append("smembers")
        return set(self.sets.get(key, set()))

    async def sismember(self, key: str, member: str) -> bool:
        self.calls.append("sismember")
        return member in self.sets.get(key, set())

    async def time(self) -> int:
        self.calls.append("time")
        await checkpoint()
        self.now_ms += 1
        return self.now_ms

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[InMemoryBatch, None]:
        self.calls.append("transaction")
        batch = InMemoryBatch()
        yield batch
        self._commit(batch)

    @asynccontextmanager
    async def watch(self, *keys: str) -> AsyncGenerator[InMemoryWatch, None]:
        self.calls.append("watch")
        snapshot = {key: self.versions.get(key, 0) for key in keys}
        txn = InMemoryWatch(self)
        yield txn
        if txn.batch is None:
            return
        # 检查与提交之间没有 await，与 EXEC 一样原子
        if any(self.versions.get(key, 0) != version for key, version in snapshot.items()):
            self.conflicts += 1
            raise KVConflictError(f"Watched keys changed: {', '.join(keys)}")
        self._commit(txn.batch)

    def _commit(self, batch: InMemoryBatch) -> None:
        self.transactions += 1
        for name, args in batch.commands:
            getattr(self, f"_{name}")(*args)

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def _delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            for store in (self.strings, self.hashes, self.sets):
                if store.pop(key, None) is not None:
                    removed += 1
                    self._touch(key)
        return removed

    def _hset(self, key: str, fields: dict[str, str]) -> int:
        self._touch(key)
        current = self.hashes.setdefault(key, {})
        added = len(set(fields) - set(current))
        current.update({name: str(value) for name, value in fields.items()})
        return added

    def _sadd(self, key: str, *members: str) -> int:
        self._touch(key)
        current = self.sets.setdefault(key, set())
        added = len(set(members) - current)
        current.update(members)
        return added

    def _srem(self, key: str, *members: str) -> int:
        self._touch(key)
        current = self.sets.get(key, set())
        removed = len(current & set(members))
        current.difference_update(members)
        # 与 Redis 一致：空集合即不存在
        if not current:
            self.sets.pop(key, None)
        return removed


# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """The code under test is asyncio-based (asyncio.gather, redis.asyncio)."""
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """测试环境配置。"""
    return Settings(
        ENVIRONMENT="local",
        REDIS_URL="redis://localhost:6379/1",  # 使用 DB 1 隔离测试
    )


# ============================================
# 存储 Fixtures
# ============================================


@pytest.fixture
def kv_client() -> InMemoryKVClient:
    """内存 KV 客户端。"""
    return InMemoryKVClient()


@pytest.fixture
def runtime(kv_client: InMemoryKVClient) -> PopcornRuntime:
    """基于内存 KV 的完整运行时。"""
    return PopcornRuntimeFactory(kv=kv_client).create()


# ============================================
# 领域对象 Fixtures
# ============================================


@pytest.fixture
def sample_show_data() -> dict[str, Any]:
    """示例剧集数据（扫描源格式，带嵌套字段）。"""
    return {
        "imdb_id": "tt001",
        "active": True,
        "title": "Popcorn Nights",
        "synopsis": "A family runs a late-night cinema.",
        "year": 2014,
        "country": "us",
        "network": "HBO",
        "rating": 8.4,
        "poster": "https://img.example.com/tt001/poster.jpg",
        "fanart": "https://img.example.com/tt001/fanart.jpg",
        "genres": ["drama", "comedy"],
        "images": {"banner": "https://img.example.com/tt001/banner.jpg"},
        "latest_episode": {
            "sien": 5,
            "season": 1,
            "episode": 5,
            "title": "Finale",
            "overview": "The last screening.",
            "first_aired": "2014-06-01T21:00:00+00:00",
        },
    }


@pytest.fixture
def sample_episode_data() -> dict[str, Any]:
    """示例单集数据。"""
    return {
        "sien": 5,
        "season": 1,
        "episode": 5,
        "title": "Finale",
        "overview": "The last screening.",
        "first_aired": "2014-06-01T21:00:00+00:00",
    }
