"""Container lifecycle management."""

import asyncio
import functools
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog
from docker.errors import APIError, DockerException, NotFound
from docker.models.containers import Container

from ...config import settings
from ...models.container import ContainerHandle, PortBinding, parse_port_bindings
from ...models.errors import (
    ContainerNotFoundError,
    ContainerStartError,
    ContainerStopError,
    DockerUnavailableError,
    PortMappingError,
)
from .client import DockerClientFactory

logger = structlog.get_logger(__name__)

LOG_TAIL_LINES = 20


def normalize_port(port) -> str:
    """Return the ``NetworkSettings.Ports`` key for a container port.

    ``5432`` and ``"5432"`` become ``"5432/tcp"``; ``"53/udp"`` is kept.
    """
    port = str(port).strip()
    if "/" in port:
        return port
    return f"{port}/tcp"


class ContainerManager:
    """Starts and removes disposable containers through the Docker daemon."""

    def __init__(self, client_factory: Optional[DockerClientFactory] = None):
        self._client_factory = client_factory or DockerClientFactory()

    @property
    def client(self):
        """Get the Docker client."""
        return self._client_factory.get_client()

    def is_available(self) -> bool:
        """Check if Docker is available."""
        return self._client_factory.is_available()

    def get_initialization_error(self) -> Optional[str]:
        """Get Docker initialization error if any."""
        return self._client_factory.get_initialization_error()

    def reset_initialization(self) -> None:
        """Reset initialization state."""
        self._client_factory.reset_initialization()

    def close(self) -> None:
        self._client_factory.close()

    def _require_client(self):
        client = self.client
        if client is None:
            error_msg = "Docker not available"
            if self.get_initialization_error():
                error_msg += f" - {self.get_initialization_error()}"
            raise DockerUnavailableError(error_msg)
        return client

    def start_container(
        self,
        image: str,
        port,
        environment: Optional[Dict[str, str]] = None,
        **run_options: Any,
    ) -> ContainerHandle:
        """Start ``image`` detached with all exposed ports published.

        Equivalent to ``docker run -P -d -e ... <image>``. Any other keyword
        accepted by ``client.containers.run`` is passed through. Blocks until
        the container is running and ``port`` has a host binding.

        Args:
            image: Image reference, pulled when missing locally
            port: Container port to resolve, e.g. ``5432`` or ``"53/udp"``
            environment: Environment variables for the container

        Returns:
            Handle with the short container id and the bound host address

        Raises:
            DockerUnavailableError: the daemon cannot be reached
            ContainerStartError: the container failed to start
            PortMappingError: ``port`` is not published
        """
        client = self._require_client()
        container_port = normalize_port(port)

        labels = settings.managed_labels(image)
        labels.update(run_options.pop("labels", None) or {})

        try:
            container = client.containers.run(
                image,
                detach=True,
                publish_all_ports=True,
                environment=environment or {},
                labels=labels,
                **run_options,
            )
        except DockerException as e:
            logger.error("Failed to run container", image=image, error=str(e))
            raise ContainerStartError(image, message=f"Cannot start the image[{image}] container: {e}") from e

        container_id = container.short_id
        try:
            self._wait_until_running(container, image)
            binding = self._resolve_binding(container, container_port)
        except Exception:
            self._discard(container)
            raise

        handle = ContainerHandle(
            id=container_id,
            host=self._host_for(binding),
            port=int(binding.host_port),
            image=image,
        )
        logger.info(
            "Docker container started",
            image=image,
            container_id=handle.id,
            host=handle.address,
        )
        return handle

    def _wait_until_running(self, container: Container, image: str) -> None:
        docker_config = settings.docker
        attempts = docker_config.start_attempts
        interval = docker_config.start_interval

        for attempt in range(1, attempts + 1):
            try:
                container.reload()
            except NotFound as e:
                raise ContainerStartError(image, message=f"Container {container.short_id} disappeared while starting") from e
            except DockerException as e:
                logger.error("Failed to inspect container", container_id=container.short_id, error=str(e))
                raise ContainerStartError(
                    image,
                    message=f"Cannot inspect the image[{image}] container {container.short_id}: {e}",
                ) from e

            status = getattr(container, "status", "")
            if status == "running":
                return

            if status in ("exited", "dead"):
                raise ContainerStartError(
                    image,
                    message=f"Container {container.short_id} {status} while starting",
                    details={"logs": self._logs_tail(container)},
                )

            if attempt == attempts:
                raise ContainerStartError(image, details={"status": status})

            logger.info(
                "Waiting for container to start",
                container_id=container.short_id,
                status=status,
                attempt=attempt,
            )
            time.sleep(attempt * interval)

    def _resolve_binding(self, container: Container, container_port: str) -> PortBinding:
        ports = container.attrs.get("NetworkSettings", {}).get("Ports") or {}
        bindings = parse_port_bindings(ports.get(container_port))
        if not bindings:
            raise PortMappingError(container.short_id, container_port)

        # Docker publishes on 0.0.0.0 and :: with the same host port
        for binding in bindings:
            if not binding.is_ipv6:
                return binding
        return bindings[0]

    def _host_for(self, binding: PortBinding) -> str:
        if binding.is_wildcard:
            return settings.docker.host_address
        return binding.host_ip

    def _logs_tail(self, container: Container) -> str:
        try:
            return container.logs(tail=LOG_TAIL_LINES).decode("utf-8", errors="replace")
        except DockerException:
            return ""

    def _discard(self, container: Container) -> None:
        """Remove a container that failed to come up."""
        try:
            container.remove(force=True, v=True)
            logger.info("Removed failed container", container_id=container.short_id)
        except DockerException as e:
            logger.warning(
                "Failed to remove container after start failure",
                container_id=container.short_id,
                error=str(e),
            )

    def stop_container(self, container_id: str, timeout: Optional[int] = None) -> None:
        """Stop and remove a container with its anonymous volumes.

        Equivalent to ``docker stop <id>`` followed by ``docker rm -v <id>``.
        """
        client = self._require_client()
        try:
            container = client.containers.get(container_id)
        except NotFound as e:
            raise ContainerNotFoundError(container_id) from e
        except APIError as e:
            raise ContainerStopError(container_id, message=str(e)) from e

        try:
            if timeout is None:
                container.stop()
            else:
                container.stop(timeout=timeout)
            container.remove(v=True)
        except NotFound as e:
            raise ContainerNotFoundError(container_id) from e
        except APIError as e:
            logger.error("Failed to stop container", container_id=container_id, error=str(e))
            raise ContainerStopError(container_id, message=f"Failed to stop container {container_id}: {e}") from e

        logger.info("Docker container removed", container_id=container_id)

    def list_managed(self) -> List[Container]:
        """Containers (running or not) labelled as started by docker-tester."""
        client = self._require_client()
        return client.containers.list(
            all=True,
            filters={"label": f"{settings.docker.label_prefix}.managed=true"},
        )

    def cleanup_managed(self) -> List[str]:
        """Force-remove every managed container. Returns the removed ids."""
        removed = []
        for container in self.list_managed():
            try:
                container.remove(force=True, v=True)
                removed.append(container.short_id)
            except NotFound:
                continue
            except APIError as e:
                logger.warning("Failed to remove container", container_id=container.short_id, error=str(e))
        logger.info("Managed containers cleaned up", count=len(removed))
        return removed

    @contextmanager
    def running_container(
        self,
        image: str,
        port,
        environment: Optional[Dict[str, str]] = None,
        **run_options: Any,
    ) -> Iterator[ContainerHandle]:
        """Start a container for the duration of a ``with`` block."""
        handle = self.start_container(image, port, environment, **run_options)
        try:
            yield handle
        finally:
            self.stop_container(handle.id)

    async def start_container_async(self, *args, **kwargs) -> ContainerHandle:
        """``start_container`` on the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self.start_container, *args, **kwargs))

    async def stop_container_async(self, container_id: str, timeout: Optional[int] = None) -> None:
        """``stop_container`` on the default executor."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, functools.partial(self.stop_container, container_id, timeout))


_default_manager: Optional[ContainerManager] = None


def get_container_manager() -> ContainerManager:
    """Process-wide manager used by the module-level helpers."""
    global _default_manager
    if _default_manager is None:
        _default_manager = ContainerManager()
    return _default_manager


def start_container(image: str, port, environment: Optional[Dict[str, str]] = None, **run_options) -> ContainerHandle:
    """Start the specified container for running tests.

    Example:
        container = start_container(
            "postgres:14-alpine",
            "5432",
            environment={"POSTGRES_USER": "postgres", "POSTGRES_PASSWORD": "password"},
        )
        connect(host=container.host, port=container.port)
    """
    return get_container_manager().start_container(image, port, environment, **run_options)


def stop_container(container_id: str) -> None:
    """Stop and remove the specified container."""
    get_container_manager().stop_container(container_id)


@contextmanager
def running_container(image: str, port, environment: Optional[Dict[str, str]] = None, **run_options):
    """Context manager form of ``start_container``/``stop_container``."""
    with get_container_manager().running_container(image, port, environment, **run_options) as handle:
        yield handle
