"""Container management services.

This package provides Docker container management functionality split into:
- client.py: Docker client factory and initialization
- manager.py: Container lifecycle management
"""

from .client import DockerClientFactory
from .manager import (
    ContainerManager,
    get_container_manager,
    normalize_port,
    running_container,
    start_container,
    stop_container,
)

__all__ = [
    "ContainerManager",
    "DockerClientFactory",
    "get_container_manager",
    "normalize_port",
    "running_container",
    "start_container",
    "stop_container",
]
