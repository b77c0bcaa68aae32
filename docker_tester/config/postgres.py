"""Postgres test database configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class PostgresConfig(BaseSettings):
    """Settings for disposable Postgres containers."""

    image: str = Field(default="postgres:14-alpine", alias="postgres_image")
    port: str = Field(default="5432", alias="postgres_port")
    connect_attempts: int = Field(default=10, ge=1, alias="postgres_connect_attempts")
    connect_interval: float = Field(default=1.0, ge=0, alias="postgres_connect_interval")
    pool_max_size: int = Field(default=5, ge=1, alias="postgres_pool_max_size")

    class Config:
        env_prefix = ""
        extra = "ignore"
