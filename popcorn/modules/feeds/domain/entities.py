"""Feed domain entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from popcorn.modules.shows.domain.entities import Episode, Show


class FeedEntry(BaseModel):
    """动态流条目 - 读取时由单集和剧集记录拼装的视图。"""

    show_id: str = Field(..., description="剧集 ID")
    sien: int = Field(..., description="单集序号")
    title: str | None = Field(default=None, description="剧集标题")
    episode_title: str | None = Field(default=None, description="单集标题")
    season: int | None = Field(default=None, description="季")
    episode: int | None = Field(default=None, description="季内集数")
    poster: str | None = Field(default=None, description="海报地址")
    first_aired: datetime | None = Field(default=None, description="首播时间")
    timestamp: int | None = Field(default=None, description="单集写入时间（毫秒）")

    @classmethod
    def from_records(cls, show: Show, episode: Episode) -> "FeedEntry":
        """Join a show and one of its episodes into a feed entry."""
        return cls(
            show_id=show.id,
            sien=episode.sien,
            title=show.title,
            episode_title=episode.title,
            season=episode.season,
            episode=episode.episode,
            poster=show.poster,
            first_aired=episode.first_aired,
            timestamp=episode.timestamp,
        )

    def recency(self) -> int:
        """排序键：优先写入时间，缺失时回退到首播时间（毫秒）。"""
        if self.timestamp is not None:
            return self.timestamp
        if self.first_aired is not None:
            return int(self.first_aired.timestamp() * 1000)
        return 0
