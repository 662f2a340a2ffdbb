"""Feed repository interface."""

from abc import ABC, abstractmethod


class FeedRepository(ABC):
    """Per-user feed of episode references."""

    @abstractmethod
    async def add(self, user_id: str, ref: str) -> bool:
        """Add an episode reference; False when already present."""
        pass

    @abstractmethod
    async def remove(self, user_id: str, *refs: str) -> int:
        """Remove references in one atomic batch, returning the count removed."""
        pass

    @abstractmethod
    async def list_refs(self, user_id: str) -> set[str]:
        """List all references in a user's feed."""
        pass
