"""Disposable Postgres databases for tests."""

import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union
from urllib.parse import quote

import asyncpg
import structlog

from ...config import settings
from ...models.errors import DatabaseNotReadyError, DockerTesterException
from ..container.manager import ContainerManager, get_container_manager
from .migrations import MigrationRunner

logger = structlog.get_logger(__name__)

CONNECT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
)


def _remove_abandoned_container(manager: ContainerManager, container_id: str) -> None:
    logger.warning("TestPostgres was not closed, removing container", container_id=container_id)
    try:
        manager.stop_container(container_id)
    except DockerTesterException as e:
        logger.error("Failed to remove abandoned container", **e.to_dict())


class TestPostgres:
    """A Postgres container with a freshly created and migrated database.

    Create one with ``await TestPostgres.create("./migrations")``. The
    container is stopped and removed by ``close()``, when leaving an
    ``async with`` block, or as a last resort when the object is garbage
    collected.
    """

    __test__ = False

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        dbname: str,
        container_id: str,
        manager: Optional[ContainerManager] = None,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.dbname = dbname
        self.container_id = container_id
        self._manager = manager or get_container_manager()
        self._pools: List[asyncpg.Pool] = []
        self._finalizer = weakref.finalize(self, _remove_abandoned_container, self._manager, container_id)

    @classmethod
    async def create(
        cls,
        migration_path: Union[str, Path, None] = None,
        *,
        image: Optional[str] = None,
        manager: Optional[ContainerManager] = None,
    ) -> "TestPostgres":
        """Start a Postgres container, create a database and migrate it.

        Args:
            migration_path: Directory of SQL migrations; ``None`` skips migrating
            image: Postgres image, defaults to ``settings.postgres.image``
            manager: Container manager, defaults to the process-wide one

        Raises:
            ContainerStartError: the container did not start
            DatabaseNotReadyError: Postgres never accepted connections
            MigrationError: a migration could not be applied
        """
        manager = manager or get_container_manager()
        postgres_config = settings.postgres
        image = image or postgres_config.image
        user = f"postgres_user_{uuid.uuid4().hex}"
        password = f"postgres_password_{uuid.uuid4().hex}"
        dbname = f"test_postgres_{uuid.uuid4().hex}"

        container = await manager.start_container_async(
            image,
            postgres_config.port,
            environment={"POSTGRES_USER": user, "POSTGRES_PASSWORD": password},
        )
        test_postgres = cls(
            host=container.host,
            port=container.port,
            user=user,
            password=password,
            dbname=dbname,
            container_id=container.id,
            manager=manager,
        )

        try:
            await test_postgres._create_database()
            if migration_path is not None:
                await test_postgres.migrate(migration_path)
        except BaseException:
            try:
                await test_postgres.close()
            except DockerTesterException as e:
                logger.error(
                    "Failed to remove Postgres container after setup failure",
                    container_id=container.id,
                    **e.to_dict(),
                )
            raise

        return test_postgres

    async def _wait_until_ready(self) -> asyncpg.Connection:
        postgres_config = settings.postgres
        attempts = postgres_config.connect_attempts
        interval = postgres_config.connect_interval

        for attempt in range(1, attempts + 1):
            try:
                conn = await asyncpg.connect(self.server_url())
                logger.info("Postgres is ready to go", container_id=self.container_id)
                return conn
            except CONNECT_ERRORS as e:
                if attempt == attempts:
                    raise DatabaseNotReadyError(self._redacted_server_url(), attempts, details={"reason": str(e)}) from e
                logger.info(
                    "Postgres is not ready",
                    container_id=self.container_id,
                    attempt=attempt,
                    reason=str(e),
                )
                await asyncio.sleep(attempt * interval)

    async def _create_database(self) -> None:
        conn = await self._wait_until_ready()
        try:
            await conn.execute(f'CREATE DATABASE "{self.dbname}"')
        finally:
            await conn.close()
        logger.info("Postgres created database", dbname=self.dbname)

    async def migrate(self, migration_path: Union[str, Path]) -> List[str]:
        """Apply the migrations in ``migration_path`` to the test database.

        Returns the ids of the migrations applied by this call.
        """
        applied = await MigrationRunner(migration_path).run_async(self.url())
        logger.info("Postgres database migrated", dbname=self.dbname, applied=len(applied))
        return applied

    async def get_pool(self, max_size: Optional[int] = None) -> asyncpg.Pool:
        """Get a connection pool for the test database.

        Pools handed out here are closed together with the database.
        """
        pool = await asyncpg.create_pool(
            self.url(),
            min_size=1,
            max_size=max_size or settings.postgres.pool_max_size,
        )
        self._pools.append(pool)
        return pool

    def server_url(self) -> str:
        """Connection URL of the server, without a database name."""
        user = quote(self.user, safe="")
        if not self.password:
            return f"postgres://{user}@{self.host}:{self.port}"
        password = quote(self.password, safe="")
        return f"postgres://{user}:{password}@{self.host}:{self.port}"

    def url(self) -> str:
        """Connection URL of the test database."""
        return f"{self.server_url()}/{self.dbname}"

    def _redacted_server_url(self) -> str:
        return f"postgres://{self.user}@{self.host}:{self.port}"

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    async def close(self) -> None:
        """Close handed-out pools, then stop and remove the container."""
        pools, self._pools = self._pools, []
        for pool in pools:
            await pool.close()

        if self._finalizer.detach() is None:
            return

        await self._manager.stop_container_async(self.container_id)
        logger.info("Postgres container dropped", container_id=self.container_id)

    async def __aenter__(self) -> "TestPostgres":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"TestPostgres(container_id={self.container_id!r}, dbname={self.dbname!r}, host={self.host!r}, port={self.port})"


@asynccontextmanager
async def disposable_postgres(
    migration_path: Union[str, Path, None] = None,
    **kwargs,
) -> AsyncIterator[TestPostgres]:
    """Create a ``TestPostgres`` for the duration of an ``async with`` block."""
    test_postgres = await TestPostgres.create(migration_path, **kwargs)
    try:
        yield test_postgres
    finally:
        await test_postgres.close()
