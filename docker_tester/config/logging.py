"""Logging configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """Logging settings."""

    level: str = Field(default="INFO", alias="log_level")
    format: str = Field(default="console", alias="log_format")

    class Config:
        env_prefix = ""
        extra = "ignore"
