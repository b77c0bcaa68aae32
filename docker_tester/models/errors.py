"""Error models and exception classes for docker-tester."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    DOCKER_UNAVAILABLE = "docker_unavailable"
    CONTAINER_START = "container_start"
    CONTAINER_STOP = "container_stop"
    CONTAINER_NOT_FOUND = "container_not_found"
    PORT_MAPPING = "port_mapping"
    DATABASE_NOT_READY = "database_not_ready"
    MIGRATION = "migration"


class DockerTesterException(Exception):
    """Base exception for docker-tester."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for log events."""
        return {
            "error": self.message,
            "error_type": self.error_type.value,
            **self.details,
        }


class DockerUnavailableError(DockerTesterException):
    """The Docker daemon cannot be reached."""

    def __init__(self, message: str = "Docker is not available", **kwargs):
        super().__init__(message=message, error_type=ErrorType.DOCKER_UNAVAILABLE, **kwargs)


class ContainerStartError(DockerTesterException):
    """A container could not be created or never reached the running state."""

    def __init__(self, image: str, message: str = None, **kwargs):
        self.image = image
        super().__init__(
            message=message or f"Cannot start the image[{image}] container",
            error_type=ErrorType.CONTAINER_START,
            **kwargs,
        )


class ContainerStopError(DockerTesterException):
    """Stopping or removing a container failed."""

    def __init__(self, container_id: str, message: str = None, **kwargs):
        self.container_id = container_id
        super().__init__(
            message=message or f"Failed to stop container {container_id}",
            error_type=ErrorType.CONTAINER_STOP,
            **kwargs,
        )


class ContainerNotFoundError(DockerTesterException):
    """The daemon does not know the container."""

    def __init__(self, container_id: str, **kwargs):
        self.container_id = container_id
        super().__init__(
            message=f"Container not found: {container_id}",
            error_type=ErrorType.CONTAINER_NOT_FOUND,
            **kwargs,
        )


class PortMappingError(DockerTesterException):
    """The requested container port has no host binding."""

    def __init__(self, container_id: str, port: str, **kwargs):
        self.container_id = container_id
        self.port = port
        super().__init__(
            message=f"The container[{container_id}] cannot find NetworkSettings.Ports for {port}",
            error_type=ErrorType.PORT_MAPPING,
            **kwargs,
        )


class DatabaseNotReadyError(DockerTesterException):
    """The database never accepted connections."""

    def __init__(self, url: str, attempts: int, message: str = None, **kwargs):
        self.attempts = attempts
        super().__init__(
            message=message or f"Database at {url} not ready after {attempts} attempts",
            error_type=ErrorType.DATABASE_NOT_READY,
            **kwargs,
        )


class MigrationError(DockerTesterException):
    """Migration discovery or bookkeeping errors."""

    def __init__(self, message: str = "Migration failed", **kwargs):
        super().__init__(message=message, error_type=ErrorType.MIGRATION, **kwargs)


class MigrationExecutionError(MigrationError):
    """A migration script failed while executing."""

    def __init__(self, migration_id: str, reason: str, **kwargs):
        self.migration_id = migration_id
        super().__init__(
            message=f"Migration {migration_id} failed: {reason}",
            **kwargs,
        )
