"""Key-value store port.

仓储只依赖这里定义的最小存储能力：
- 单键 get/set/delete/exists
- Hash 读写（扁平记录）
- 集合增删查
- 服务端时间
- 原子批量（MULTI/EXEC）
- 乐观事务（WATCH + MULTI/EXEC，被监视的 key 变化时提交失败）
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class KVConflictError(RuntimeError):
    """乐观事务提交失败：被监视的 key 在读取之后被其他写入修改。"""


class KVBatch(Protocol):
    """原子批量中可排队的命令。

    命令只是入队，退出 transaction() 上下文时一次性提交。
    """

    def hset(
        self,
        name: str,
        key: str | None = None,
        value: str | None = None,
        mapping: Mapping[str, str] | None = None,
    ) -> Any: ...

    def sadd(self, name: str, *values: str) -> Any: ...

    def srem(self, name: str, *values: str) -> Any: ...

    def delete(self, *names: str) -> Any: ...


class KVWatch(Protocol):
    """WATCH 之后的事务句柄。

    multi() 之前的读取立即执行；multi() 返回的批量在退出 watch() 上下文时提交。
    未调用 multi() 就退出时不提交任何写入。
    """

    async def exists(self, *keys: str) -> int: ...

    async def hgetall(self, key: str) -> dict[str, str]: ...

    def multi(self) -> KVBatch: ...


class KVClient(Protocol):
    """Port for key-value store access."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def exists(self, *keys: str) -> int: ...

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int: ...

    async def hgetall(self, key: str) -> dict[str, str]: ...

    async def sadd(self, key: str, *members: str) -> int: ...

    async def srem(self, key: str, *members: str) -> int: ...

    async def smembers(self, key: str) -> set[str]: ...

    async def sismember(self, key: str, member: str) -> bool: ...

    async def time(self) -> int:
        """服务端当前时间（毫秒）。"""
        ...

    def transaction(self) -> AbstractAsyncContextManager[KVBatch]:
        """开启原子批量，退出上下文时提交。"""
        ...

    def watch(self, *keys: str) -> AbstractAsyncContextManager[KVWatch]:
        """监视 keys 并开启乐观事务。

        Raises:
            KVConflictError: 提交时被监视的 key 已被修改
        """
        ...
