"""pytest plugin providing Docker-backed fixtures.

Registered through the ``pytest11`` entry point, so installing the package
is enough:

    @pytest.mark.docker
    @pytest.mark.asyncio
    async def test_insert(test_postgres):
        pool = await test_postgres.get_pool()
        await pool.execute("INSERT INTO todos (title) VALUES ('test')")
"""

from pathlib import Path

import pytest
import pytest_asyncio
import structlog

from .services.container import ContainerManager
from .services.database import TestPostgres
from .utils.logging import configure_structlog

DEFAULT_MIGRATIONS = "migrations"


def pytest_addoption(parser):
    group = parser.getgroup("docker-tester")
    group.addoption(
        "--postgres-migrations",
        action="store",
        default=None,
        help="Directory of SQL migrations applied to the test_postgres fixture",
    )
    parser.addini(
        "postgres_migrations",
        help="Directory of SQL migrations applied to the test_postgres fixture (default: migrations)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "docker: test needs a reachable Docker daemon")
    # An application that set up structlog itself keeps its configuration
    if not structlog.is_configured():
        configure_structlog()


@pytest.fixture(scope="session")
def docker_manager():
    """Container manager shared by the whole session."""
    manager = ContainerManager()
    yield manager
    manager.close()


@pytest.fixture(autouse=True)
def _skip_without_docker(request):
    if request.node.get_closest_marker("docker") is None:
        return
    manager = request.getfixturevalue("docker_manager")
    if not manager.is_available():
        pytest.skip(f"Docker not available: {manager.get_initialization_error()}")


@pytest.fixture
def postgres_migrations_path(request):
    """Migrations for ``test_postgres``; override to point elsewhere.

    An explicitly configured directory is returned even when it does not
    exist, so migrating fails loudly. Only a missing default
    ``./migrations`` yields ``None``.
    """
    configured = request.config.getoption("--postgres-migrations") or request.config.getini("postgres_migrations")
    path = Path(configured or DEFAULT_MIGRATIONS)
    if not path.is_absolute():
        path = Path(request.config.rootpath) / path
    if not configured and not path.is_dir():
        return None
    return path


@pytest_asyncio.fixture
async def test_postgres(docker_manager, postgres_migrations_path):
    """A migrated Postgres database, removed after the test."""
    db = await TestPostgres.create(postgres_migrations_path, manager=docker_manager)
    try:
        yield db
    finally:
        await db.close()
