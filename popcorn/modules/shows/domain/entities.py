"""Show domain entities."""

from datetime import datetime

from pydantic import AliasChoices, Field, field_validator

from popcorn.core.domain.exceptions import ValidationError, require_identity
from popcorn.core.domain.record import FlatRecord


class Show(FlatRecord):
    """Show record - 剧集详情。

    id 同时接受扫描源的 imdb_id 字段名。
    """

    id: str = Field(
        ...,
        validation_alias=AliasChoices("id", "imdb_id"),
        description="剧集外部 ID",
    )
    active: bool = Field(default=False, description="是否仍在播出")
    title: str | None = Field(default=None, description="标题")
    synopsis: str | None = Field(default=None, description="简介")
    year: int | None = Field(default=None, description="首播年份")
    country: str | None = Field(default=None, description="国家")
    network: str | None = Field(default=None, description="播出网络")
    rating: float | None = Field(default=None, description="评分")
    poster: str | None = Field(default=None, description="海报地址")
    fanart: str | None = Field(default=None, description="背景图地址")
    timestamp: int | None = Field(default=None, description="写入时间（毫秒）")

    @field_validator("id", mode="before")
    @classmethod
    def _validate_id(cls, value: object) -> str:
        return require_identity(value, "id")


class Episode(FlatRecord):
    """Episode record - 单集详情，写入后不可变。"""

    show_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("show_id", "imdb_id"),
        description="所属剧集 ID",
    )
    sien: int = Field(..., description="剧集内单集序号，同时作为排序键")
    season: int | None = Field(default=None, description="季")
    episode: int | None = Field(default=None, description="季内集数")
    title: str | None = Field(default=None, description="单集标题")
    overview: str | None = Field(default=None, description="单集简介")
    first_aired: datetime | None = Field(default=None, description="首播时间")
    timestamp: int | None = Field(default=None, description="写入时间（毫秒）")


def require_sien(value: object) -> int:
    """校验并规范化单集序号：key 由整数形式生成（"05" 与 5 指向同一单集）。"""
    text = require_identity(value, "sien")
    try:
        return int(text)
    except ValueError as e:
        raise ValidationError(f"Invalid episode sien '{text}'") from e
