"""Docker client factory and initialization."""

from typing import Optional

import docker
import structlog
from docker.errors import DockerException

from ...config import settings

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Factory for creating Docker clients with proper initialization."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """Initialize the factory without contacting the daemon."""
        docker_config = settings.docker
        self.base_url = base_url if base_url is not None else docker_config.base_url
        self.timeout = timeout if timeout is not None else docker_config.timeout
        self.client: Optional[docker.DockerClient] = None
        self._initialization_error: Optional[str] = None
        self._initialization_attempted: bool = False

    def _create_client(self) -> docker.DockerClient:
        if self.base_url:
            return docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
        # DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH
        return docker.from_env(timeout=self.timeout)

    def _ensure_client(self) -> bool:
        """Ensure Docker client is initialized. Returns True if successful."""
        if self.client is not None:
            return True

        if self._initialization_attempted and self._initialization_error:
            return False

        self._initialization_attempted = True
        client = None
        try:
            logger.debug("Initializing Docker client", base_url=self.base_url or "env")
            client = self._create_client()
            client.ping()
            version_info = client.version()
            logger.info(
                "Docker connection successful",
                server_version=version_info.get("Version", "unknown"),
            )
            self.client = client
            self._initialization_error = None
            return True
        except DockerException as e:
            logger.error("Failed to create Docker client", error=str(e))
            self._initialization_error = str(e)
            if client is not None:
                client.close()
            self.client = None
            return False

    def is_available(self) -> bool:
        """Check if Docker is available."""
        return self._ensure_client()

    def get_initialization_error(self) -> Optional[str]:
        """Get Docker initialization error if any."""
        return self._initialization_error

    def reset_initialization(self) -> None:
        """Reset initialization state to allow retry."""
        self._initialization_attempted = False
        self._initialization_error = None
        self.close()
        logger.debug("Docker client initialization state reset")

    def get_client(self) -> Optional[docker.DockerClient]:
        """Get the Docker client, ensuring it's initialized."""
        if self._ensure_client():
            return self.client
        return None

    def close(self):
        """Close Docker client connection."""
        if self.client is None:
            return
        try:
            self.client.close()
        except DockerException as e:
            logger.error("Error closing Docker client", error=str(e))
        finally:
            self.client = None
