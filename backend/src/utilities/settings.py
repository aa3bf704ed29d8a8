from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import HISTORY_SIZE, REPLAY_INTERVAL, SUBSCRIBER_QUEUE_SIZE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    '''
    Process configuration, read from RELAY_* environment variables
    (or a local .env file) on top of the defaults below.
    '''

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # secrets
    webhook_secret: Optional[str] = Field(default=None, description="Shared secret for x-hub-signature")
    verify_token: Optional[str] = Field(default=None, description="Token expected by the subscription handshake")

    # relay
    history_size: int = Field(default=HISTORY_SIZE, gt=0)
    replay_interval: float = Field(default=REPLAY_INTERVAL, ge=0)
    subscriber_queue_size: int = Field(default=SUBSCRIBER_QUEUE_SIZE, gt=0)
    reject_invalid_signatures: bool = Field(
        default=True,
        description="Reject webhooks with a bad signature instead of only logging them",
    )

    # server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: LogLevel = "INFO"
    log_format: Literal["json", "console"] = "console"
