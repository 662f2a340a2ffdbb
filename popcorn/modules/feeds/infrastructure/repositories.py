"""Redis feed repository implementation."""

from popcorn.core.domain.ports.kv import KVClient
from popcorn.core.infrastructure.redis.keys import RedisKeys
from popcorn.modules.feeds.domain.repository import FeedRepository


class RedisFeedRepository(FeedRepository):
    """Redis implementation of the per-user feed set."""

    def __init__(self, kv: KVClient):
        self.kv = kv

    async def add(self, user_id: str, ref: str) -> bool:
        return await self.kv.sadd(RedisKeys.feed(user_id), ref) > 0

    async def remove(self, user_id: str, *refs: str) -> int:
        if not refs:
            return 0
        # 单条 SREM 携带多个成员，本身即原子
        return await self.kv.srem(RedisKeys.feed(user_id), *refs)

    async def list_refs(self, user_id: str) -> set[str]:
        return await self.kv.smembers(RedisKeys.feed(user_id))
