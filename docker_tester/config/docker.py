"""Docker configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Docker daemon and container lifecycle settings."""

    base_url: str | None = Field(default=None, alias="docker_base_url")
    timeout: int = Field(default=60, ge=10, alias="docker_timeout")

    # Address used when the daemon publishes a port on a wildcard interface
    host_address: str = Field(default="127.0.0.1", alias="container_host_address")

    # Readiness polling: attempt i sleeps i * interval seconds
    start_attempts: int = Field(default=10, ge=1, alias="container_start_attempts")
    start_interval: float = Field(default=1.0, ge=0, alias="container_start_interval")

    # Container labeling for cleanup
    label_prefix: str = Field(default="com.docker-tester", alias="container_label_prefix")

    class Config:
        env_prefix = ""
        extra = "ignore"
