"""Configuration management for docker-tester.

Settings are read from environment variables (and an optional ``.env`` file)
into one flat ``Settings`` object, with grouped read-only views for each
concern.

Usage:
    from docker_tester.config import settings

    # Grouped access
    settings.docker.start_attempts
    settings.postgres.image

    # Flat access
    settings.container_start_attempts
    settings.postgres_image
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .docker import DockerConfig
from .logging import LoggingConfig
from .postgres import PostgresConfig


class Settings(BaseSettings):
    """docker-tester settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Docker Configuration
    docker_base_url: str | None = Field(
        default=None,
        description="Daemon URL (e.g. unix:///var/run/docker.sock); DOCKER_HOST is used when unset",
    )
    docker_timeout: int = Field(default=60, ge=10)

    # Container Lifecycle Configuration
    container_host_address: str = Field(default="127.0.0.1")
    container_start_attempts: int = Field(default=10, ge=1)
    container_start_interval: float = Field(default=1.0, ge=0)
    container_label_prefix: str = Field(default="com.docker-tester")

    # Postgres Configuration
    postgres_image: str = Field(default="postgres:14-alpine")
    postgres_port: str = Field(default="5432")
    postgres_connect_attempts: int = Field(default=10, ge=1)
    postgres_connect_interval: float = Field(default=1.0, ge=0)
    postgres_pool_max_size: int = Field(default=5, ge=1)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only the json and console renderers are supported."""
        if v.lower() not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()

    @field_validator("postgres_port")
    @classmethod
    def validate_postgres_port(cls, v):
        """Accept '5432' or '5432/tcp'."""
        number = v.split("/", 1)[0]
        if not number.isdigit() or not 1 <= int(number) <= 65535:
            raise ValueError(f"Invalid container port: {v}")
        return v

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_base_url=self.docker_base_url,
            docker_timeout=self.docker_timeout,
            container_host_address=self.container_host_address,
            container_start_attempts=self.container_start_attempts,
            container_start_interval=self.container_start_interval,
            container_label_prefix=self.container_label_prefix,
        )

    @property
    def postgres(self) -> PostgresConfig:
        """Access Postgres configuration group."""
        return PostgresConfig(
            postgres_image=self.postgres_image,
            postgres_port=self.postgres_port,
            postgres_connect_attempts=self.postgres_connect_attempts,
            postgres_connect_interval=self.postgres_connect_interval,
            postgres_pool_max_size=self.postgres_pool_max_size,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
        )

    def managed_labels(self, image: str) -> dict[str, str]:
        """Labels attached to every container started by docker-tester."""
        return {
            f"{self.container_label_prefix}.managed": "true",
            f"{self.container_label_prefix}.image": image,
        }


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "DockerConfig",
    "PostgresConfig",
    "LoggingConfig",
]
