"""Subscription application services."""

from loguru import logger

from popcorn.core.domain.exceptions import require_identity
from popcorn.core.infrastructure.logging import BusinessEvents
from popcorn.modules.feeds.application.services import FeedService
from popcorn.modules.subscriptions.domain.repository import SubscriptionRepository


class SubscriptionService:
    """Subscription ledger.

    订阅关系是数据源，动态流是派生状态：
    - subscribe: 原子写入双向集合后，回填该剧集最新一集到用户动态流
    - unsubscribe: 原子移除双向集合后，清理动态流中该剧集的全部条目
    回填 / 清理失败只记录日志，不回滚订阅关系。
    """

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        feed_service: FeedService,
    ) -> None:
        self.subscription_repo = subscription_repository
        self.feed_service = feed_service

    async def subscribe(self, user_id: str, show_id: str) -> None:
        """Subscribe a user to a show and backfill its latest episode."""
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")

        await self.subscription_repo.add(user_id, show_id)
        BusinessEvents.subscription_created(user_id=user_id, show_id=show_id)

        try:
            await self.feed_service.backfill_latest(user_id, show_id)
        except Exception as e:
            logger.warning(f"Feed backfill failed for {user_id}/{show_id}: {e}")
            BusinessEvents.feature_degraded(
                feature="feed_backfill",
                reason=str(e),
                user_id=user_id,
                show_id=show_id,
            )

    async def unsubscribe(self, user_id: str, show_id: str) -> None:
        """Unsubscribe a user from a show and purge the show from the feed."""
        user_id = require_identity(user_id, "user_id")
        show_id = require_identity(show_id, "show_id")

        await self.subscription_repo.remove(user_id, show_id)
        BusinessEvents.subscription_removed(user_id=user_id, show_id=show_id)

        try:
            await self.feed_service.remove_show_from_feed(user_id, show_id)
        except Exception as e:
            logger.warning(f"Feed purge failed for {user_id}/{show_id}: {e}")
            BusinessEvents.feature_degraded(
                feature="feed_purge",
                reason=str(e),
                user_id=user_id,
                show_id=show_id,
            )

    async def list_subscribers(self, show_id: str) -> list[str]:
        """List users subscribed to a show."""
        return await self.subscription_repo.list_subscribers(
            require_identity(show_id, "show_id")
        )

    async def list_subscriptions(self, user_id: str) -> list[str]:
        """List shows a user is subscribed to."""
        return await self.subscription_repo.list_subscriptions(
            require_identity(user_id, "user_id")
        )

    async def is_subscribed(self, user_id: str, show_id: str) -> bool:
        return await self.subscription_repo.exists(
            require_identity(user_id, "user_id"),
            require_identity(show_id, "show_id"),
        )
