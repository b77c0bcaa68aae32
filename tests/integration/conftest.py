"""Fixtures for tests against a live Docker daemon."""

import pytest

from docker_tester.services.container import ContainerManager


@pytest.fixture(autouse=True)
def fast_polling():
    """Real containers need the configured polling intervals."""
    yield


@pytest.fixture(scope="module")
def live_manager():
    manager = ContainerManager()
    if not manager.is_available():
        pytest.skip(f"Docker not available: {manager.get_initialization_error()}")
    yield manager
    manager.close()
