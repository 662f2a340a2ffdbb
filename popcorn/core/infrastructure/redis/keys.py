"""Redis Key 命名规范。

Key 布局即持久化格式，与既有的 Redis 实例互通时必须保持不变：
- show:{id}                        剧集详情（Hash）
- show:{id}:episode:{sien}         单集详情（Hash）
- show:{id}:episode:latest         最新一集指针（Hash，冗余副本）
- show:{id}:episodes               剧集的 sien 集合（Set）
- show:{id}:subscribers            剧集的订阅用户（Set）
- user:{id}:subscriptions          用户订阅的剧集（Set）
- user:{id}:feed                   用户动态流，成员为单集 key（Set）
- shows:active / shows:inactive    活跃 / 非活跃剧集分区（Set）
"""

from collections.abc import Mapping
from typing import Any

# 时间戳补齐位数，保证按字典序排序即按时间排序
PAD_TIME_WIDTH = 16


def resolve_identity(value: Any, field: str = "id") -> Any:
    """解析身份标识。

    既接受裸 id，也接受带 id / sien 字段的对象或 dict（调用方便利）。
    """
    if isinstance(value, Mapping):
        return value.get(field)
    if value is None or isinstance(value, str | int):
        return value
    return getattr(value, field, value)


def _identity(value: Any, field: str = "id") -> str:
    return str(resolve_identity(value, field))


def pad_time(time_ms: int) -> str:
    """将毫秒时间戳左侧补零到固定宽度。"""
    return str(int(time_ms)).zfill(PAD_TIME_WIDTH)


class RedisKeys:
    """Redis Key 命名空间管理。"""

    SHOW_PREFIX = "show"
    USER_PREFIX = "user"
    LATEST_SEGMENT = "latest"

    # 活跃 / 非活跃剧集分区
    ACTIVE_SHOWS = "shows:active"
    INACTIVE_SHOWS = "shows:inactive"

    # 扫描日志
    # latest_scan:start
    LATEST_SCAN_START = "latest_scan:start"
    # episode_update:{time}:{show_id}
    EPISODE_UPDATE_PREFIX = "episode_update"
    # log:{type}:{time}
    LOG_PREFIX = "log"

    @classmethod
    def show(cls, show: Any) -> str:
        """生成剧集详情 key。"""
        return f"{cls.SHOW_PREFIX}:{_identity(show)}"

    @classmethod
    def episode(cls, show: Any, sien: Any = None) -> str:
        """生成单集 key。

        Args:
            show: 剧集 ID 或带 id 的对象
            sien: 单集序号或带 sien 的对象；省略时返回最新一集指针 key

        Returns:
            格式化的 Redis key
        """
        segment = cls.LATEST_SEGMENT if sien is None else _identity(sien, "sien")
        return f"{cls.episode_prefix(show)}{segment}"

    @classmethod
    def episode_prefix(cls, show: Any) -> str:
        """生成某剧集所有单集 key 的公共前缀（用于动态流按剧集过滤）。"""
        return f"{cls.show(show)}:episode:"

    @classmethod
    def episodes(cls, show: Any) -> str:
        """生成剧集的 sien 集合 key。"""
        return f"{cls.show(show)}:episodes"

    @classmethod
    def subscribers(cls, show: Any) -> str:
        """生成剧集订阅者集合 key。"""
        return f"{cls.show(show)}:subscribers"

    @classmethod
    def subscriptions(cls, user: Any) -> str:
        """生成用户订阅集合 key。"""
        return f"{cls.USER_PREFIX}:{_identity(user)}:subscriptions"

    @classmethod
    def feed(cls, user: Any) -> str:
        """生成用户动态流 key。"""
        return f"{cls.USER_PREFIX}:{_identity(user)}:feed"

    @classmethod
    def episode_update(cls, time_ms: int, show: Any) -> str:
        """生成单集更新日志 key。"""
        return f"{cls.EPISODE_UPDATE_PREFIX}:{pad_time(time_ms)}:{_identity(show)}"

    @classmethod
    def log(cls, log_type: str, time_ms: int) -> str:
        """生成通用日志 key。"""
        return f"{cls.LOG_PREFIX}:{log_type}:{pad_time(time_ms)}"
