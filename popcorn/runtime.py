"""Runtime factory wiring services onto one shared store client.

进程启动时创建一次存储客户端，所有服务共享；进程退出时关闭。

Usage:
    async with open_runtime() as runtime:
        await runtime.subscriptions.subscribe("alice", "tt001")
        feed = await runtime.feeds.get_feed("alice")
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from popcorn.core.domain.ports.kv import KVClient
from popcorn.core.infrastructure.redis.client import get_async_redis_client
from popcorn.modules.feeds.application.services import FeedService
from popcorn.modules.feeds.infrastructure.repositories import RedisFeedRepository
from popcorn.modules.scans.application.services import ScanLogService
from popcorn.modules.scans.infrastructure.repositories import RedisScanLogRepository
from popcorn.modules.shows.application.services import ShowCatalogService
from popcorn.modules.shows.infrastructure.repositories import (
    RedisEpisodeRepository,
    RedisShowMembershipIndex,
    RedisShowRepository,
)
from popcorn.modules.subscriptions.application.services import SubscriptionService
from popcorn.modules.subscriptions.infrastructure.repositories import (
    RedisSubscriptionRepository,
)


class PopcornRuntime:
    """Bundle of services sharing one store client."""

    def __init__(
        self,
        kv: KVClient,
        catalog: ShowCatalogService,
        subscriptions: SubscriptionService,
        feeds: FeedService,
        scans: ScanLogService,
    ) -> None:
        self.kv = kv
        self.catalog = catalog
        self.subscriptions = subscriptions
        self.feeds = feeds
        self.scans = scans


class PopcornRuntimeFactory:
    """Factory to build repositories and services on top of a store client."""

    def __init__(self, *, kv: KVClient) -> None:
        self.kv = kv

    def create(self) -> PopcornRuntime:
        membership = RedisShowMembershipIndex(self.kv)
        show_repo = RedisShowRepository(self.kv)
        episode_repo = RedisEpisodeRepository(self.kv, membership)
        subscription_repo = RedisSubscriptionRepository(self.kv)

        feeds = FeedService(
            feed_repository=RedisFeedRepository(self.kv),
            episode_repository=episode_repo,
            show_repository=show_repo,
            subscription_repository=subscription_repo,
        )

        return PopcornRuntime(
            kv=self.kv,
            catalog=ShowCatalogService(show_repo, episode_repo, membership),
            subscriptions=SubscriptionService(subscription_repo, feeds),
            feeds=feeds,
            scans=ScanLogService(RedisScanLogRepository(self.kv)),
        )


@asynccontextmanager
async def open_runtime(
    *,
    url: str | None = None,
    timeout: float = 5.0,
) -> AsyncGenerator[PopcornRuntime, None]:
    """连接 Redis 并构建运行时，退出时关闭连接。

    Raises:
        RedisUnavailableError: 进入时 Redis 不可用
    """
    async with get_async_redis_client(timeout=timeout, url=url) as redis_client:
        yield PopcornRuntimeFactory(kv=redis_client).create()
