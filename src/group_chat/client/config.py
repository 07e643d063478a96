from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Terminal client settings; independent of the server's database config."""

    API_BASE_URL: str = "http://localhost:8000/api"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    SYNC_INTERVAL_SECONDS: float = 3.0
    PRESENCE_WINDOW_SECONDS: float = 10.0
    DEFAULT_GROUP_ID: int = 1

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )
