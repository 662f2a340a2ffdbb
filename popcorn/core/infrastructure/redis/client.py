"""Redis 客户端封装。

提供统一的 Redis 访问接口，支持：
- 连接池管理（进程内共享一个客户端，启动时创建、关闭时释放）
- 健康检查
- Hash / Set 操作与原子批量（MULTI/EXEC）
- 乐观事务（WATCH + MULTI/EXEC）

传输层错误不在此处重试，原样抛给调用方。
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import WatchError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

from popcorn.core.config import settings
from popcorn.core.domain.ports.kv import KVConflictError
from popcorn.core.infrastructure.health import HealthStatus, RedisHealthResult


class RedisUnavailableError(RuntimeError):
    """Redis 不可用（连接失败/超时等）。"""


class RedisClient:
    """Redis 客户端封装类，实现 KVClient 端口。"""

    def __init__(self, url: str | None = None):
        """初始化 Redis 客户端。

        Args:
            url: Redis 连接 URL，默认使用配置解析出的 redis_url
        """
        self._url = url or settings.redis_url
        self._client: Redis | None = None

    @property
    def client(self) -> Redis:
        """获取 Redis 客户端实例（延迟初始化）。"""
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT,
                retry_on_timeout=False,  # 重试策略由调用方决定
            )
        return self._client

    async def close(self) -> None:
        """关闭 Redis 连接。"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        """检查 Redis 连接是否正常。

        Returns:
            连接正常返回 True，否则返回 False
        """
        try:
            return await self.client.ping()
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    @asynccontextmanager
    async def ensure_available(
        self,
        *,
        timeout: float = 5.0,
        close_on_exit: bool = False,
    ) -> AsyncGenerator[RedisClient, None]:
        """确保进入上下文时 Redis 连接可用。

        Usage:
            redis_client = RedisClient()
            try:
                async with redis_client.ensure_available(timeout=5.0, close_on_exit=True):
                    ...
            except RedisUnavailableError:
                ...
        """
        try:
            # 直接调用底层 client.ping()，避免与 self.ping() 的日志重复
            ok = await asyncio.wait_for(self.client.ping(), timeout=timeout)
            if not ok:
                raise RedisUnavailableError("Redis ping returned falsy result")
        except TimeoutError as e:
            if close_on_exit:
                await self.close()
            raise RedisUnavailableError("Redis ping timeout") from e
        except RedisUnavailableError:
            if close_on_exit:
                await self.close()
            raise
        except Exception as e:
            if close_on_exit:
                await self.close()
            raise RedisUnavailableError(f"Redis ping failed: {e}") from e

        try:
            yield self
        finally:
            if close_on_exit:
                await self.close()

    async def health_check(self) -> RedisHealthResult:
        """执行 Redis 健康检查。

        Returns:
            RedisHealthResult: 健康检查结果
        """
        try:
            started = time.perf_counter()
            is_connected = await self.ping()
            latency_ms = round((time.perf_counter() - started) * 1000, 2)
            if not is_connected:
                return RedisHealthResult(status=HealthStatus.ERROR, connected=False)

            info = await self.client.info("server")
            return RedisHealthResult(
                status=HealthStatus.OK,
                connected=True,
                version=info.get("redis_version", "unknown"),
                latency_ms=latency_ms,
            )
        except Exception as e:
            return RedisHealthResult(
                status=HealthStatus.ERROR,
                connected=False,
                error=str(e),
            )

    # ============ 基础操作 ============

    async def get(self, key: str) -> str | None:
        """获取字符串值。"""
        return await self.client.get(key)

    async def set(self, key: str, value: str) -> bool:
        """设置字符串值。"""
        return bool(await self.client.set(key, value))

    async def delete(self, *keys: str) -> int:
        """删除一个或多个键。"""
        return await self.client.delete(*keys)

    async def exists(self, *keys: str) -> int:
        """检查键是否存在。"""
        return await self.client.exists(*keys)

    async def time(self) -> int:
        """获取 Redis 服务端时间（毫秒）。"""
        seconds, microseconds = await self.client.time()
        return int(seconds) * 1000 + round(int(microseconds) / 1000)

    # ============ Hash 操作 ============

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        """写入 Hash 字段。"""
        return await self.client.hset(key, mapping=dict(mapping))

    async def hgetall(self, key: str) -> dict[str, str]:
        """获取 Hash 全部字段，键不存在时返回空 dict。"""
        return await self.client.hgetall(key)

    # ============ 集合操作 ============

    async def sadd(self, key: str, *members: str) -> int:
        """向集合添加成员。"""
        return await self.client.sadd(key, *members)

    async def srem(self, key: str, *members: str) -> int:
        """从集合移除成员。"""
        return await self.client.srem(key, *members)

    async def smembers(self, key: str) -> set[str]:
        """获取集合所有成员。"""
        return await self.client.smembers(key)

    async def sismember(self, key: str, member: str) -> bool:
        """检查成员是否在集合中。"""
        return bool(await self.client.sismember(key, member))

    # ============ 原子批量 ============

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Pipeline, None]:
        """开启 MULTI/EXEC 原子批量。

        上下文内的命令只入队；正常退出时一次性提交，上下文内抛出异常则丢弃。

        Usage:
            async with redis_client.transaction() as batch:
                batch.sadd("a", "1")
                batch.sadd("b", "2")
        """
        async with self.client.pipeline(transaction=True) as pipe:
            yield pipe
            await pipe.execute()

    @asynccontextmanager
    async def watch(self, *keys: str) -> AsyncGenerator[RedisWatch, None]:
        """WATCH keys 后开启乐观事务。

        multi() 之前的读取立即执行；multi() 之后入队的命令在退出上下文时以
        MULTI/EXEC 提交。未调用 multi() 就退出时只释放 WATCH，不写入。

        Usage:
            async with redis_client.watch("k") as txn:
                if await txn.exists("k"):
                    return
                batch = txn.multi()
                batch.hset("k", mapping={"f": "v"})

        Raises:
            KVConflictError: 被监视的 key 在 WATCH 之后被修改，EXEC 被拒绝
        """
        async with self.client.pipeline(transaction=True) as pipe:
            await pipe.watch(*keys)
            txn = RedisWatch(pipe)
            yield txn
            if not txn.started:
                return
            try:
                await pipe.execute()
            except WatchError as e:
                raise KVConflictError(f"Watched keys changed: {', '.join(keys)}") from e


class RedisWatch:
    """WATCH 状态下的 pipeline 句柄，实现 KVWatch 端口。"""

    def __init__(self, pipe: Pipeline):
        self._pipe = pipe
        self.started = False

    async def exists(self, *keys: str) -> int:
        return await self._pipe.exists(*keys)

    async def hgetall(self, key: str) -> dict[str, str]:
        return await self._pipe.hgetall(key)

    def multi(self) -> Pipeline:
        """切换到 MULTI，之后的命令只入队。"""
        self._pipe.multi()
        self.started = True
        return self._pipe


@asynccontextmanager
async def get_async_redis_client(
    *,
    timeout: float = 5.0,
    url: str | None = None,
) -> AsyncGenerator[RedisClient, None]:
    """获取可用的 RedisClient（上下文管理器）。

    - 进入上下文时会执行 ping 校验，并带超时控制
    - 退出上下文时自动关闭连接

    Usage:
        try:
            async with get_async_redis_client(timeout=5.0) as redis_client:
                await redis_client.set("k", "v")
        except RedisUnavailableError:
            ...
    """
    client = RedisClient(url=url)
    async with client.ensure_available(timeout=timeout, close_on_exit=True):
        yield client
