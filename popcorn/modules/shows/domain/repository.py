"""Show repository interfaces."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from popcorn.core.domain.ports.kv import KVBatch
from popcorn.modules.shows.domain.entities import Episode, Show


class ShowRepository(ABC):
    """Show record store interface."""

    @abstractmethod
    async def save(self, show: Show) -> Show:
        """Stamp and write a show record, returning the stored record."""
        pass

    @abstractmethod
    async def get_by_id(self, show_id: str) -> Show | None:
        """Get show by id."""
        pass


class EpisodeRepository(ABC):
    """Episode record store interface."""

    @abstractmethod
    async def add(self, show_id: str, episode: Episode) -> Episode | None:
        """Insert an episode once; returns None when it already exists."""
        pass

    @abstractmethod
    async def get(self, show_id: str, sien: int) -> Episode | None:
        """Get a single episode."""
        pass

    @abstractmethod
    async def get_by_key(self, key: str) -> Episode | None:
        """Get an episode by its record key."""
        pass

    @abstractmethod
    async def get_latest(self, show_id: str) -> Episode | None:
        """Get the latest-episode pointer of a show."""
        pass


class ShowMembershipIndex(ABC):
    """Active/inactive partition and per-show episode sets."""

    @abstractmethod
    async def set_active(self, show_id: str, active: bool) -> None:
        """Move a show into the active or inactive partition."""
        pass

    @abstractmethod
    async def list_active(self) -> list[str]:
        """List active show ids."""
        pass

    @abstractmethod
    async def list_inactive(self) -> list[str]:
        """List inactive show ids."""
        pass

    @abstractmethod
    def iter_active(self) -> AsyncIterator[str]:
        """Iterate active show ids."""
        pass

    @abstractmethod
    async def register_episode(
        self, show_id: str, sien: int, batch: KVBatch | None = None
    ) -> None:
        """Register an episode sien in the show's episode set."""
        pass

    @abstractmethod
    async def list_episode_siens(self, show_id: str) -> list[int]:
        """List registered episode siens of a show, ascending."""
        pass
