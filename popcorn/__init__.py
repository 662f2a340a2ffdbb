"""popcorn-store - TV 剧集追踪与通知服务的 Redis 持久层。"""

from popcorn.runtime import PopcornRuntime, PopcornRuntimeFactory, open_runtime

__all__ = ["PopcornRuntime", "PopcornRuntimeFactory", "open_runtime"]
