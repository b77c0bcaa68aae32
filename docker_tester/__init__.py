"""Docker tester.

Start Docker containers for tests and tear them down afterwards.

Getting started (Docker must be installed and running):

    from docker_tester import start_container, stop_container

    container = start_container("postgres:14-alpine", "5432", environment={
        "POSTGRES_USER": "postgres",
        "POSTGRES_PASSWORD": "password",
    })
    print(container.host, container.port)
    stop_container(container.id)

A migrated, throwaway Postgres database:

    from docker_tester import TestPostgres

    async with await TestPostgres.create("./migrations") as db:
        pool = await db.get_pool()
"""

from ._version import __version__
from .models import ContainerHandle, DockerTesterException
from .services.container import (
    ContainerManager,
    running_container,
    start_container,
    stop_container,
)
from .services.database import MigrationRunner, TestPostgres, disposable_postgres

__all__ = [
    "__version__",
    "ContainerHandle",
    "ContainerManager",
    "DockerTesterException",
    "MigrationRunner",
    "TestPostgres",
    "disposable_postgres",
    "running_container",
    "start_container",
    "stop_container",
]
