"""存储健康检查类型定义。"""

from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class RedisHealthResult(BaseModel):
    """Redis 健康检查结果。"""

    status: HealthStatus = Field(..., description="健康状态")
    connected: bool = Field(..., description="是否已连接")
    version: str | None = Field(None, description="Redis 版本")
    latency_ms: float | None = Field(None, description="PING 往返耗时（毫秒）")
    error: str | None = Field(None, description="错误信息")

    def to_dict(self) -> dict[str, str | bool | float | None]:
        return self.model_dump(mode="json", exclude_none=False)
