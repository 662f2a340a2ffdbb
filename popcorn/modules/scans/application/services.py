"""Scan log application services."""

from collections.abc import Mapping
from typing import Any

from popcorn.core.domain.exceptions import ValidationError, require_identity
from popcorn.core.infrastructure.redis.mapper import encode_field
from popcorn.modules.scans.domain.entities import EpisodeUpdate
from popcorn.modules.scans.domain.repository import ScanLogRepository


class ScanLogService:
    """Scan bookkeeping: scan markers, episode update log and typed log entries."""

    def __init__(self, scan_log_repository: ScanLogRepository) -> None:
        self.scan_log_repo = scan_log_repository

    async def get_time(self) -> int:
        """获取存储服务端时间（毫秒）。"""
        return await self.scan_log_repo.current_time()

    async def log_scan(self) -> int:
        """记录本次扫描开始时间，返回该时间。"""
        time_ms = await self.get_time()
        await self.scan_log_repo.mark_scan_start(time_ms)
        return time_ms

    async def get_latest_scan(self) -> int | None:
        return await self.scan_log_repo.get_scan_start()

    async def log_episode_update(
        self, update: EpisodeUpdate | Mapping[str, Any]
    ) -> EpisodeUpdate:
        """记录单集更新，时间由存储服务端分配。"""
        record = EpisodeUpdate.from_payload(update)
        return await self.scan_log_repo.add_episode_update(
            record.model_copy(update={"time": None})
        )

    async def log(self, log_type: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """记录通用日志条目。

        Args:
            log_type: 日志类型（作为 key 的一部分）
            data: 扁平字段；None 值忽略，非标量值拒绝

        Returns:
            带 time 字段的已记录数据
        """
        log_type = require_identity(log_type, "log_type")
        for name, value in data.items():
            if isinstance(value, Mapping | list | tuple | set):
                raise ValidationError(f"Log field '{name}' must be a scalar value")

        time_ms = await self.get_time()
        entry = {name: value for name, value in data.items() if value is not None}
        entry["time"] = time_ms
        await self.scan_log_repo.add_entry(
            log_type,
            time_ms,
            {name: encode_field(value) for name, value in entry.items()},
        )
        return entry
