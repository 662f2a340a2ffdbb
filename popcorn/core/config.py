"""Application configuration."""

from typing import Literal
from urllib.parse import quote

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "popcorn-store"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # Redis
    REDIS_URL: str | None = None  # 显式 URL 优先
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None
    REDIS_SOCKET: str | None = None  # unix socket 路径，优先于 host/port
    REDIS_SOCKET_TIMEOUT: float = 10.0  # 读写超时 10 秒
    REDIS_CONNECT_TIMEOUT: float = 5.0  # 连接超时 5 秒

    @computed_field
    @property
    def redis_url(self) -> str:
        """解析最终的 Redis 连接 URL。

        优先级：REDIS_URL > REDIS_SOCKET > REDIS_HOST/REDIS_PORT。
        """
        if self.REDIS_URL:
            return self.REDIS_URL

        auth = f":{quote(self.REDIS_PASSWORD, safe='')}@" if self.REDIS_PASSWORD else ""
        if self.REDIS_SOCKET:
            return f"unix://{auth}{self.REDIS_SOCKET}?db={self.REDIS_DB}"
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


settings = Settings()
