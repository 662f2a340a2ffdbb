"""Base mapper for entity <-> Redis Hash conversion."""

from datetime import date, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from popcorn.core.domain.record import FlatRecord


def encode_field(value: Any) -> str:
    """将标量字段编码为 Hash 中存储的字符串。"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


E = TypeVar("E", bound=FlatRecord)


class HashMapper(Generic[E]):
    """Mapper for converting between flat records and Redis Hash fields.

    None 值不写入；读取时空 Hash 视为不存在。
    """

    def __init__(self, record_type: type[E]) -> None:
        self.record_type = record_type

    def to_domain(self, fields: dict[str, str]) -> E | None:
        """Convert Redis Hash fields to domain record."""
        if not fields:
            return None
        return self.record_type.model_validate(fields)

    def to_hash(self, record: BaseModel) -> dict[str, str]:
        """Convert domain record to Redis Hash fields."""
        return {
            name: encode_field(value)
            for name, value in record.model_dump(exclude_none=True).items()
        }
