from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stubport.constants import (
    DEFAULT_FAILURE_WINDOW,
    DEFAULT_WAIT_DELAY,
    DEFAULT_XSRF_COOKIE_NAME,
    DEFAULT_XSRF_HEADER_NAME,
    ENV_PREFIX,
)

__all__ = ["Config"]


class Config(BaseSettings):
    """Engine settings, read from ``STUBPORT_*`` environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    delay: int = Field(default=DEFAULT_WAIT_DELAY, ge=0, description="Delivery delay in ms")
    failure_window: int = Field(
        default=DEFAULT_FAILURE_WINDOW,
        ge=0,
        description="How long a failure stub waits for its request, in ms",
    )
    raise_for_status: bool = Field(
        default=True,
        description="Reject non-2xx responses using httpx's raise_for_status policy",
    )
    xsrf_cookie_name: str = DEFAULT_XSRF_COOKIE_NAME
    xsrf_header_name: str = DEFAULT_XSRF_HEADER_NAME
    log_level: str = "WARNING"
