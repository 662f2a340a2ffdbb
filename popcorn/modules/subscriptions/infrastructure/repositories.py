"""Redis subscription repository implementation."""

from popcorn.core.domain.ports.kv import KVClient
from popcorn.core.infrastructure.redis.keys import RedisKeys
from popcorn.modules.subscriptions.domain.repository import SubscriptionRepository


class RedisSubscriptionRepository(SubscriptionRepository):
    """Redis implementation of the mirrored subscriber/subscription sets."""

    def __init__(self, kv: KVClient):
        self.kv = kv

    async def add(self, user_id: str, show_id: str) -> None:
        async with self.kv.transaction() as batch:
            batch.sadd(RedisKeys.subscribers(show_id), user_id)
            batch.sadd(RedisKeys.subscriptions(user_id), show_id)

    async def remove(self, user_id: str, show_id: str) -> None:
        async with self.kv.transaction() as batch:
            batch.srem(RedisKeys.subscribers(show_id), user_id)
            batch.srem(RedisKeys.subscriptions(user_id), show_id)

    async def list_subscribers(self, show_id: str) -> list[str]:
        return sorted(await self.kv.smembers(RedisKeys.subscribers(show_id)))

    async def list_subscriptions(self, user_id: str) -> list[str]:
        return sorted(await self.kv.smembers(RedisKeys.subscriptions(user_id)))

    async def exists(self, user_id: str, show_id: str) -> bool:
        return await self.kv.sismember(RedisKeys.subscriptions(user_id), show_id)
