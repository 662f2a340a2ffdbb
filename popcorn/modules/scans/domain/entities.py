"""Scan log domain entities."""

from pydantic import AliasChoices, Field, field_validator

from popcorn.core.domain.exceptions import require_identity
from popcorn.core.domain.record import FlatRecord


class EpisodeUpdate(FlatRecord):
    """单集更新日志：扫描发现某剧集从上一集推进到新一集。"""

    show_id: str = Field(
        ...,
        validation_alias=AliasChoices("show_id", "imdb_id"),
        description="剧集 ID",
    )
    time: int | None = Field(default=None, description="记录时间（毫秒）")
    prev_season: int | None = Field(default=None, description="上一季")
    prev_episode: int | None = Field(default=None, description="上一集")
    new_season: int | None = Field(default=None, description="新季")
    new_episode: int | None = Field(default=None, description="新集")

    @field_validator("show_id", mode="before")
    @classmethod
    def _validate_show_id(cls, value: object) -> str:
        return require_identity(value, "show_id")
