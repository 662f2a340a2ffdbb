"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志
"""

import sys
from typing import Any

import structlog
from loguru import logger

from popcorn.core.config import settings


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    _configure_structlog()
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def _configure_structlog() -> None:
    """配置 structlog 处理器链。"""
    # 本地开发使用人类可读格式，其他环境使用 JSON
    if settings.ENVIRONMENT == "local":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """配置 loguru。"""
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/popcorn_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


class BusinessEvents:
    """业务事件日志助手类。

    Usage:
        from popcorn.core.infrastructure.logging import BusinessEvents

        BusinessEvents.subscription_created(user_id="alice", show_id="tt001")
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def show_saved(
        cls,
        show_id: str,
        active: bool,
        **extra: Any,
    ) -> None:
        """记录剧集保存事件。"""
        cls._log.info(
            "show_saved",
            event_type="scan",
            show_id=show_id,
            active=active,
            **extra,
        )

    @classmethod
    def episode_recognized(
        cls,
        show_id: str,
        sien: int,
        **extra: Any,
    ) -> None:
        """记录新单集入库事件。"""
        cls._log.info(
            "episode_recognized",
            event_type="scan",
            show_id=show_id,
            sien=sien,
            **extra,
        )

    @classmethod
    def show_activity_changed(
        cls,
        show_id: str,
        active: bool,
        **extra: Any,
    ) -> None:
        """记录剧集活跃状态切换事件。"""
        cls._log.info(
            "show_activity_changed",
            event_type="membership",
            show_id=show_id,
            active=active,
            **extra,
        )

    @classmethod
    def subscription_created(
        cls,
        user_id: str,
        show_id: str,
        **extra: Any,
    ) -> None:
        """记录订阅事件。"""
        cls._log.info(
            "subscription_created",
            event_type="subscription",
            user_id=user_id,
            show_id=show_id,
            **extra,
        )

    @classmethod
    def subscription_removed(
        cls,
        user_id: str,
        show_id: str,
        **extra: Any,
    ) -> None:
        """记录取消订阅事件。"""
        cls._log.info(
            "subscription_removed",
            event_type="subscription",
            user_id=user_id,
            show_id=show_id,
            **extra,
        )

    @classmethod
    def feed_purged(
        cls,
        user_id: str,
        show_id: str,
        removed: int,
        **extra: Any,
    ) -> None:
        """记录动态流按剧集清理事件。"""
        cls._log.info(
            "feed_purged",
            event_type="feed",
            user_id=user_id,
            show_id=show_id,
            removed=removed,
            **extra,
        )

    @classmethod
    def feed_fanout_completed(
        cls,
        show_id: str,
        sien: int,
        delivered: int,
        total: int,
        **extra: Any,
    ) -> None:
        """记录新单集分发事件（delivered < total 表示部分送达）。"""
        level = "info" if delivered == total else "warning"
        getattr(cls._log, level)(
            "feed_fanout_completed",
            event_type="feed",
            show_id=show_id,
            sien=sien,
            delivered=delivered,
            total=total,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录功能降级事件。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
