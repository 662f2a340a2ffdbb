"""Scan log repository interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from popcorn.modules.scans.domain.entities import EpisodeUpdate


class ScanLogRepository(ABC):
    """Append-only scan bookkeeping."""

    @abstractmethod
    async def current_time(self) -> int:
        """Store time in milliseconds."""
        pass

    @abstractmethod
    async def mark_scan_start(self, time_ms: int) -> None:
        """Record the start time of the latest scan."""
        pass

    @abstractmethod
    async def get_scan_start(self) -> int | None:
        """Get the start time of the latest scan."""
        pass

    @abstractmethod
    async def add_episode_update(self, update: EpisodeUpdate) -> EpisodeUpdate:
        """Append an episode update entry."""
        pass

    @abstractmethod
    async def add_entry(
        self, log_type: str, time_ms: int, fields: Mapping[str, str]
    ) -> None:
        """Append a generic typed log entry."""
        pass
