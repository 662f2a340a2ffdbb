"""Redis scan log repository implementation."""

from collections.abc import Mapping

from popcorn.core.domain.ports.kv import KVClient
from popcorn.core.infrastructure.redis.keys import RedisKeys
from popcorn.core.infrastructure.redis.mapper import HashMapper
from popcorn.modules.scans.domain.entities import EpisodeUpdate
from popcorn.modules.scans.domain.repository import ScanLogRepository


class RedisScanLogRepository(ScanLogRepository):
    """Redis implementation of scan bookkeeping."""

    def __init__(self, kv: KVClient, mapper: HashMapper[EpisodeUpdate] | None = None):
        self.kv = kv
        self.mapper = mapper or HashMapper(EpisodeUpdate)

    async def current_time(self) -> int:
        return await self.kv.time()

    async def mark_scan_start(self, time_ms: int) -> None:
        await self.kv.set(RedisKeys.LATEST_SCAN_START, str(time_ms))

    async def get_scan_start(self) -> int | None:
        value = await self.kv.get(RedisKeys.LATEST_SCAN_START)
        return int(value) if value else None

    async def add_episode_update(self, update: EpisodeUpdate) -> EpisodeUpdate:
        if update.time is None:
            update = update.model_copy(update={"time": await self.current_time()})
        key = RedisKeys.episode_update(update.time, update.show_id)
        await self.kv.hset(key, self.mapper.to_hash(update))
        return update

    async def add_entry(
        self, log_type: str, time_ms: int, fields: Mapping[str, str]
    ) -> None:
        await self.kv.hset(RedisKeys.log(log_type, time_ms), fields)
