"""Redis 客户端封装。"""

from popcorn.core.infrastructure.redis.client import (
    RedisClient,
    RedisUnavailableError,
    get_async_redis_client,
)
from popcorn.core.infrastructure.redis.keys import RedisKeys, pad_time

__all__ = [
    "RedisClient",
    "RedisKeys",
    "RedisUnavailableError",
    "get_async_redis_client",
    "pad_time",
]
