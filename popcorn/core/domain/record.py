"""Base class for flat store records."""

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from popcorn.core.domain.exceptions import ValidationError


class FlatRecord(BaseModel):
    """扁平记录基类。

    只有显式声明的标量字段会被保存：未声明的字段（如嵌套对象）在校验时被丢弃，
    已声明字段传入非标量值则校验失败。
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        validate_assignment=True,
    )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | Self) -> Self:
        """从调用方数据构建记录，校验失败时抛出领域 ValidationError。"""
        if isinstance(payload, cls):
            return payload.model_copy()
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {cls.__name__.lower()} record: {e.errors(include_url=False)}"
            ) from e
