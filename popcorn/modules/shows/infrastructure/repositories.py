"""Redis show repository implementations."""

from collections.abc import AsyncIterator

from loguru import logger

from popcorn.core.domain.ports.kv import KVBatch, KVClient, KVConflictError
from popcorn.core.infrastructure.redis.keys import RedisKeys
from popcorn.core.infrastructure.redis.mapper import HashMapper
from popcorn.modules.shows.domain.entities import Episode, Show
from popcorn.modules.shows.domain.repository import (
    EpisodeRepository,
    ShowMembershipIndex,
    ShowRepository,
)

# 单集写入乐观事务的最大尝试次数
MAX_WATCH_ATTEMPTS = 10


class RedisShowRepository(ShowRepository):
    """Redis implementation of show record store."""

    def __init__(self, kv: KVClient, mapper: HashMapper[Show] | None = None):
        self.kv = kv
        self.mapper = mapper or HashMapper(Show)

    async def save(self, show: Show) -> Show:
        stored = show.model_copy(update={"timestamp": await self.kv.time()})
        key = RedisKeys.show(stored.id)

        # 整体替换，避免残留上一次写入的字段
        async with self.kv.transaction() as batch:
            batch.delete(key)
            batch.hset(key, mapping=self.mapper.to_hash(stored))

        logger.debug(f"Saved show {stored.id}")
        return stored

    async def get_by_id(self, show_id: str) -> Show | None:
        return self.mapper.to_domain(await self.kv.hgetall(RedisKeys.show(show_id)))


class RedisShowMembershipIndex(ShowMembershipIndex):
    """Redis implementation of the active/inactive partition and episode sets."""

    def __init__(self, kv: KVClient):
        self.kv = kv

    async def set_active(self, show_id: str, active: bool) -> None:
        if active:
            source, target = RedisKeys.INACTIVE_SHOWS, RedisKeys.ACTIVE_SHOWS
        else:
            source, target = RedisKeys.ACTIVE_SHOWS, RedisKeys.INACTIVE_SHOWS

        # 移除与添加放在同一个 MULTI 中，分区始终互斥且完整
        async with self.kv.transaction() as batch:
            batch.srem(source, show_id)
            batch.sadd(target, show_id)

    async def list_active(self) -> list[str]:
        return sorted(await self.kv.smembers(RedisKeys.ACTIVE_SHOWS))

    async def list_inactive(self) -> list[str]:
        return sorted(await self.kv.smembers(RedisKeys.INACTIVE_SHOWS))

    async def iter_active(self) -> AsyncIterator[str]:
        for show_id in await self.list_active():
            yield show_id

    async def register_episode(
        self, show_id: str, sien: int, batch: KVBatch | None = None
    ) -> None:
        key = RedisKeys.episodes(show_id)
        if batch is not None:
            batch.sadd(key, str(sien))
            return
        await self.kv.sadd(key, str(sien))

    async def list_episode_siens(self, show_id: str) -> list[int]:
        members = await self.kv.smembers(RedisKeys.episodes(show_id))
        return sorted(int(member) for member in members)


class RedisEpisodeRepository(EpisodeRepository):
    """Redis implementation of episode record store.

    单集写入是"先到先得"：key 已存在时跳过，不覆盖字段和时间戳。
    """

    def __init__(
        self,
        kv: KVClient,
        membership: ShowMembershipIndex,
        mapper: HashMapper[Episode] | None = None,
    ):
        self.kv = kv
        self.membership = membership
        self.mapper = mapper or HashMapper(Episode)

    async def add(self, show_id: str, episode: Episode) -> Episode | None:
        for attempt in range(1, MAX_WATCH_ATTEMPTS + 1):
            try:
                return await self._insert(show_id, episode)
            except KVConflictError:
                if attempt == MAX_WATCH_ATTEMPTS:
                    raise
                logger.debug(
                    f"Episode {show_id}/{episode.sien} write conflicted, "
                    f"retrying ({attempt}/{MAX_WATCH_ATTEMPTS})"
                )
        return None

    async def _insert(self, show_id: str, episode: Episode) -> Episode | None:
        key = RedisKeys.episode(show_id, episode.sien)
        latest_key = RedisKeys.episode(show_id)

        # 单集 key 与最新指针同时被监视：并发写入同一单集或更新指针时 EXEC 失败
        async with self.kv.watch(key, latest_key) as txn:
            if await txn.exists(key):
                logger.debug(f"Episode {key} already stored, skipping")
                return None

            stored = episode.model_copy(
                update={"show_id": show_id, "timestamp": await self.kv.time()}
            )
            fields = self.mapper.to_hash(stored)
            latest = self.mapper.to_domain(await txn.hgetall(latest_key))
            is_newest = latest is None or stored.sien > latest.sien

            batch = txn.multi()
            batch.hset(key, mapping=fields)
            await self.membership.register_episode(show_id, stored.sien, batch)
            if is_newest:
                batch.delete(latest_key)
                batch.hset(latest_key, mapping=fields)

        return stored

    async def get(self, show_id: str, sien: int) -> Episode | None:
        return await self.get_by_key(RedisKeys.episode(show_id, sien))

    async def get_by_key(self, key: str) -> Episode | None:
        return self.mapper.to_domain(await self.kv.hgetall(key))

    async def get_latest(self, show_id: str) -> Episode | None:
        return await self.get_by_key(RedisKeys.episode(show_id))
