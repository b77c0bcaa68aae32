"""Data models for docker-tester."""

from .container import ContainerHandle, PortBinding, parse_port_bindings
from .errors import (
    ContainerNotFoundError,
    ContainerStartError,
    ContainerStopError,
    DatabaseNotReadyError,
    DockerTesterException,
    DockerUnavailableError,
    ErrorType,
    MigrationError,
    MigrationExecutionError,
    PortMappingError,
)

__all__ = [
    # Containers
    "ContainerHandle",
    "PortBinding",
    "parse_port_bindings",
    # Errors
    "ErrorType",
    "DockerTesterException",
    "DockerUnavailableError",
    "ContainerStartError",
    "ContainerStopError",
    "ContainerNotFoundError",
    "PortMappingError",
    "DatabaseNotReadyError",
    "MigrationError",
    "MigrationExecutionError",
]
