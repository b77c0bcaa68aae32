"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from docker import DockerClient

from docker_tester.config import settings
from docker_tester.models import ContainerHandle
from docker_tester.services.container import ContainerManager, DockerClientFactory

FIXTURES_DIR = Path(__file__).parent / "fixtures"
MIGRATIONS_DIR = FIXTURES_DIR / "migrations"

pytest_plugins = ["pytester"]

CONTAINER_ID = "3f2a9c1b7d4e8a0b5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b"


@pytest.fixture(autouse=True)
def fast_polling(monkeypatch):
    """Readiness polling without real sleeps."""
    monkeypatch.setattr(settings, "container_start_interval", 0.0)
    monkeypatch.setattr(settings, "postgres_connect_interval", 0.0)


@pytest.fixture
def migrations_dir() -> Path:
    return MIGRATIONS_DIR


def make_container(ports=None, status="running"):
    """Mock docker-py Container with a published port."""
    container = MagicMock()
    container.id = CONTAINER_ID
    container.short_id = CONTAINER_ID[:12]
    container.status = status
    container.reload.return_value = None
    container.logs.return_value = b"database system is ready to accept connections\n"
    if ports is None:
        ports = {
            "5432/tcp": [
                {"HostIp": "0.0.0.0", "HostPort": "49153"},
                {"HostIp": "::", "HostPort": "49153"},
            ]
        }
    container.attrs = {"NetworkSettings": {"Ports": ports}}
    return container


@pytest.fixture
def mock_container():
    return make_container()


@pytest.fixture
def mock_docker(mock_container):
    """Mock Docker client for testing."""
    mock_client = MagicMock(spec=DockerClient)

    mock_client.containers.run.return_value = mock_container
    mock_client.containers.get.return_value = mock_container
    mock_client.containers.list.return_value = [mock_container]

    return mock_client


@pytest.fixture
def client_factory(mock_docker):
    factory = MagicMock(spec=DockerClientFactory)
    factory.get_client.return_value = mock_docker
    factory.is_available.return_value = True
    factory.get_initialization_error.return_value = None
    return factory


@pytest.fixture
def container_manager(client_factory):
    return ContainerManager(client_factory=client_factory)


@pytest.fixture
def mock_manager():
    """ContainerManager double for database tests."""
    manager = MagicMock(spec=ContainerManager)
    manager.start_container_async = AsyncMock(
        return_value=ContainerHandle(id=CONTAINER_ID[:12], host="127.0.0.1", port=49153, image="postgres:14-alpine")
    )
    manager.stop_container_async = AsyncMock(return_value=None)
    return manager


@pytest.fixture
def container_factory():
    """Build mock containers with custom ports or status."""
    return make_container
