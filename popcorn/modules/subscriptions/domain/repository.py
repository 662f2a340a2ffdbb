"""Subscription repository interface."""

from abc import ABC, abstractmethod


class SubscriptionRepository(ABC):
    """Bidirectional user <-> show subscription relation.

    两个方向的集合必须始终对称：用户出现在剧集的订阅者中，
    当且仅当剧集出现在该用户的订阅中。
    """

    @abstractmethod
    async def add(self, user_id: str, show_id: str) -> None:
        """Add both directions in one atomic batch."""
        pass

    @abstractmethod
    async def remove(self, user_id: str, show_id: str) -> None:
        """Remove both directions in one atomic batch."""
        pass

    @abstractmethod
    async def list_subscribers(self, show_id: str) -> list[str]:
        """List users subscribed to a show."""
        pass

    @abstractmethod
    async def list_subscriptions(self, user_id: str) -> list[str]:
        """List shows a user is subscribed to."""
        pass

    @abstractmethod
    async def exists(self, user_id: str, show_id: str) -> bool:
        """Check whether a user is subscribed to a show."""
        pass
