"""Show catalog application services.

扫描进程的写入入口：剧集详情、单集、活跃 / 非活跃分区。
"""

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any

from popcorn.core.domain.exceptions import require_identity
from popcorn.core.infrastructure.logging import BusinessEvents
from popcorn.modules.shows.domain.entities import Episode, Show, require_sien
from popcorn.modules.shows.domain.repository import (
    EpisodeRepository,
    ShowMembershipIndex,
    ShowRepository,
)

# 扫描源数据中嵌套最新一集的字段名
LATEST_EPISODE_FIELDS = ("latest_episode", "latestEpisode")


@dataclass(frozen=True)
class SavedShow:
    """save_show 的结果：已存储的剧集，以及本次新入库的单集（若有）。"""

    show: Show
    new_episode: Episode | None = None


class ShowCatalogService:
    """Record store and membership index operations for shows and episodes."""

    def __init__(
        self,
        show_repository: ShowRepository,
        episode_repository: EpisodeRepository,
        membership_index: ShowMembershipIndex,
    ) -> None:
        self.show_repo = show_repository
        self.episode_repo = episode_repository
        self.membership = membership_index

    async def put_show(self, show: Show | Mapping[str, Any]) -> Show:
        """Strip non-scalar fields, stamp and store a show.

        Returns:
            实际存储的剧集记录
        """
        record = Show.from_payload(show)
        stored = await self.show_repo.save(record)
        BusinessEvents.show_saved(show_id=stored.id, active=stored.active)
        return stored

    async def get_show(self, show_id: str) -> Show | None:
        return await self.show_repo.get_by_id(require_identity(show_id, "show_id"))

    async def put_episode(
        self, show_id: str, episode: Episode | Mapping[str, Any]
    ) -> Episode | None:
        """Store an episode once (first write wins).

        Returns:
            新入库的单集；单集已存在时返回 None
        """
        show_id = require_identity(show_id, "show_id")
        record = Episode.from_payload(episode)
        stored = await self.episode_repo.add(show_id, record)
        if stored is not None:
            BusinessEvents.episode_recognized(show_id=show_id, sien=stored.sien)
        return stored

    async def get_episode(self, show_id: str, sien: int | str) -> Episode | None:
        return await self.episode_repo.get(
            require_identity(show_id, "show_id"), require_sien(sien)
        )

    async def get_latest_episode(self, show_id: str) -> Episode | None:
        return await self.episode_repo.get_latest(require_identity(show_id, "show_id"))

    async def list_episode_siens(self, show_id: str) -> list[int]:
        return await self.membership.list_episode_siens(
            require_identity(show_id, "show_id")
        )

    async def set_show_active(self, show_id: str, active: bool) -> None:
        """Move a show into the active or inactive partition."""
        show_id = require_identity(show_id, "show_id")
        await self.membership.set_active(show_id, active)
        BusinessEvents.show_activity_changed(show_id=show_id, active=active)

    async def list_active(self) -> list[str]:
        return await self.membership.list_active()

    async def list_inactive(self) -> list[str]:
        return await self.membership.list_inactive()

    def iter_active_shows(self) -> AsyncIterator[str]:
        """Iterate active show ids (scan entry point)."""
        return self.membership.iter_active()

    async def save_show(self, payload: Show | Mapping[str, Any]) -> SavedShow:
        """Persist a scanned show.

        并发执行三步：保存剧集详情、保存嵌套的最新一集、更新活跃分区。
        所有校验在任何存储调用之前完成。
        """
        show = Show.from_payload(payload)
        episode = self._nested_episode(payload)

        async def _no_episode() -> None:
            return None

        stored_show, new_episode, _ = await asyncio.gather(
            self.put_show(show),
            self.put_episode(show.id, episode) if episode else _no_episode(),
            self.set_show_active(show.id, show.active),
        )
        return SavedShow(show=stored_show, new_episode=new_episode)

    @staticmethod
    def _nested_episode(payload: Show | Mapping[str, Any]) -> Episode | None:
        if not isinstance(payload, Mapping):
            return None
        for field in LATEST_EPISODE_FIELDS:
            nested = payload.get(field)
            if nested:
                return Episode.from_payload(nested)
        return None
