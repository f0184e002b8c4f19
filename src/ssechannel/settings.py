from typing import Optional

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # === General ===
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # === Channel ===
    json_encode: bool = Field(default=False, validation_alias="SSE_JSON_ENCODE")
    retry_timeout: Optional[int] = Field(default=None, validation_alias="SSE_RETRY_TIMEOUT")
    default_connection_id: str = Field(
        default="connectionId", validation_alias="SSE_DEFAULT_CONNECTION_ID"
    )

    # === Streams ===
    ping_interval: float = Field(default=15.0, validation_alias="SSE_PING_INTERVAL")
    queue_maxsize: int = Field(default=100, validation_alias="SSE_QUEUE_MAXSIZE")

    @field_validator("retry_timeout", mode="before")
    @classmethod
    def empty_retry_is_unset(cls, v):
        # "" and "0" in the environment both mean no retry directive
        if v in (None, "", "0", 0):
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
