"""Feed application services.

动态流是派生状态：成员只是单集 key 的引用，读取时再与单集、剧集记录拼装。
"""

import asyncio
from typing import Any

from loguru import logger

from popcorn.core.domain.exceptions import require_identity
from popcorn.core.infrastructure.logging import BusinessEvents
from popcorn.core.infrastructure.redis.keys import RedisKeys, resolve_identity
from popcorn.modules.feeds.domain.entities import FeedEntry
from popcorn.modules.feeds.domain.repository import FeedRepository
from popcorn.modules.shows.domain.entities import Episode, Show, require_sien
from popcorn.modules.shows.domain.repository import EpisodeRepository, ShowRepository
from popcorn.modules.subscriptions.domain.repository import SubscriptionRepository


class FeedService:
    """Feed aggregator: maintains and materializes per-user feeds."""

    def __init__(
        self,
        feed_repository: FeedRepository,
        episode_repository: EpisodeRepository,
        show_repository: ShowRepository,
        subscription_repository: SubscriptionRepository,
    ) -> None:
        self.feed_repo = feed_repository
        self.episode_repo = episode_repository
        self.show_repo = show_repository
        self.subscription_repo = subscription_repository

    async def add_episode_to_feed(
        self, user_id: str, show_id: str, episode_ref: Any
    ) -> bool:
        """Add an episode reference to a user's feed.

        Args:
            user_id: 用户 ID
            show_id: 剧集 ID
            episode_ref: 单集序号，或带 sien 字段的单集对象 / dict

        Returns:
            新加入返回 True，已存在返回 False
        """
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")
        sien = require_sien(resolve_identity(episode_ref, "sien"))
        return await self.feed_repo.add(user_id, RedisKeys.episode(show_id, sien))

    async def remove_episode_from_feed(
        self, user_id: str, show_id: str, sien: Any
    ) -> bool:
        """Remove a single episode reference from a user's feed."""
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")
        sien = require_sien(resolve_identity(sien, "sien"))
        removed = await self.feed_repo.remove(
            user_id, RedisKeys.episode(show_id, sien)
        )
        return removed > 0

    async def remove_show_from_feed(self, user_id: str, show_id: str) -> int:
        """Remove every entry of one show from a user's feed.

        动态流未按剧集建索引，需要遍历整个集合按 key 前缀过滤。

        Returns:
            移除的条目数
        """
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")

        prefix = RedisKeys.episode_prefix(show_id)
        refs = [
            ref
            for ref in await self.feed_repo.list_refs(user_id)
            if ref.startswith(prefix)
        ]
        removed = await self.feed_repo.remove(user_id, *refs)

        BusinessEvents.feed_purged(user_id=user_id, show_id=show_id, removed=removed)
        return removed

    async def backfill_latest(self, user_id: str, show_id: str) -> bool:
        """Push a show's current latest episode into a user's feed.

        Returns:
            剧集暂无最新一集或已在动态流中时返回 False
        """
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")

        latest = await self.episode_repo.get_latest(show_id)
        if latest is None:
            logger.debug(f"Show {show_id} has no latest episode to backfill")
            return False
        return await self.add_episode_to_feed(user_id, show_id, latest)

    async def fan_out_episode(self, show_id: str, episode: Episode | Any) -> int:
        """Deliver a newly recognized episode to every subscriber of its show.

        每个订阅者单独写入，不做批量；中途失败时记录已送达数量并抛出存储错误。
        重新执行是安全的（集合语义去重）。

        Returns:
            送达的订阅者数量
        """
        show_id = require_identity(show_id, "show_id")
        sien = require_sien(resolve_identity(episode, "sien"))
        subscribers = await self.subscription_repo.list_subscribers(show_id)

        delivered = 0
        try:
            for user_id in subscribers:
                await self.add_episode_to_feed(user_id, show_id, sien)
                delivered += 1
        finally:
            BusinessEvents.feed_fanout_completed(
                show_id=show_id,
                sien=sien,
                delivered=delivered,
                total=len(subscribers),
            )
        return delivered

    async def get_feed(self, user_id: str) -> list[FeedEntry]:
        """Materialize a user's feed, newest first.

        无法解析的引用（单集或剧集已不存在）直接丢弃。相同时间戳的条目顺序不保证。
        """
        user_id = require_identity(user_id, "user_id")
        refs = list(await self.feed_repo.list_refs(user_id))
        if not refs:
            return []

        episodes = await asyncio.gather(
            *(self.episode_repo.get_by_key(ref) for ref in refs)
        )
        resolved = [episode for episode in episodes if episode and episode.show_id]
        shows = await self._load_shows({episode.show_id for episode in resolved})

        entries = [
            FeedEntry.from_records(shows[episode.show_id], episode)
            for episode in resolved
            if episode.show_id in shows
        ]
        dropped = len(refs) - len(entries)
        if dropped:
            logger.debug(f"Dropped {dropped} unresolvable feed refs for user {user_id}")

        entries.sort(key=FeedEntry.recency, reverse=True)
        return entries

    async def _load_shows(self, show_ids: set[str]) -> dict[str, Show]:
        ordered = list(show_ids)
        shows = await asyncio.gather(
            *(self.show_repo.get_by_id(show_id) for show_id in ordered)
        )
        return {
            show_id: show
            for show_id, show in zip(ordered, shows, strict=True)
            if show is not None
        }
