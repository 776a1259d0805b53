from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:3333/api"
    WS_URL: str = "ws://localhost:3333/ws"
    ACCESS_TOKEN: str | None = None

    HTTP_TIMEOUT_SECONDS: float = 15.0
    MESSAGE_PAGE_SIZE: int = 50

    WS_PING_INTERVAL_SECONDS: float = 20.0
    WS_OPEN_TIMEOUT_SECONDS: float = 10.0

    TYPING_IDLE_SECONDS: float = 2.0
    REMOTE_TYPING_TIMEOUT_SECONDS: float = 3.0

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
