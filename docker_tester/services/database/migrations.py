"""SQL migrations for test databases, applied with yoyo-migrations.

Migrations are plain SQL files in one directory, applied in filename order:

    20221128135505_todo.sql
    20230101000000_users.sql
    20230101000000_users.rollback.sql    optional, used by undo()

yoyo records applied migrations in the ``_migrations`` table and holds its
lock table while applying or rolling back.
"""

import asyncio
import functools
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

import structlog
from yoyo import get_backend, read_migrations
from yoyo.exceptions import BadMigration, LockTimeout

from ...models.errors import MigrationError, MigrationExecutionError

logger = structlog.get_logger(__name__)

MIGRATIONS_TABLE = "_migrations"


def backend_uri(url: str) -> str:
    """yoyo selects its psycopg2 backend from the ``postgresql`` scheme."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def read_sql_migrations(path: Union[str, Path]):
    """Load the migrations in ``path``.

    Raises:
        MigrationError: the directory is missing or holds an unreadable migration
    """
    source = Path(path)
    if not source.is_dir():
        raise MigrationError(f"Migration directory not found: {source}")
    try:
        return read_migrations(str(source))
    except BadMigration as e:
        raise MigrationError(f"Cannot read migrations in {source}: {e}") from e


class MigrationRunner:
    """Applies a directory of SQL migrations to a Postgres database."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.migrations = read_sql_migrations(self.path)
        logger.debug("Read migrations", path=str(self.path), count=len(self.migrations))

    @contextmanager
    def _backend(self, url: str) -> Iterator:
        backend = get_backend(backend_uri(url), migration_table=MIGRATIONS_TABLE)
        try:
            yield backend
        finally:
            backend.connection.close()

    @contextmanager
    def _locked(self, backend) -> Iterator[None]:
        try:
            with backend.lock():
                yield
        except LockTimeout as e:
            raise MigrationError(f"Timed out waiting for the migration lock on {self.path}") from e

    def applied(self, url: str) -> List[str]:
        """Ids of the migrations from this directory already applied to ``url``."""
        with self._backend(url) as backend:
            return [m.id for m in self.migrations if backend.is_applied(m)]

    def run(self, url: str) -> List[str]:
        """Apply every pending migration; returns the ids applied now."""
        applied: List[str] = []
        with self._backend(url) as backend, self._locked(backend):
            for migration in backend.to_apply(self.migrations):
                try:
                    backend.apply_one(migration)
                except backend.DatabaseError as e:
                    logger.error("Migration failed", migration=migration.id, error=str(e))
                    raise MigrationExecutionError(migration.id, str(e)) from e
                applied.append(migration.id)
                logger.debug("Applied migration", migration=migration.id)

        logger.info("Migrations applied", path=str(self.path), applied=len(applied), total=len(self.migrations))
        return applied

    def undo(self, url: str, target: Optional[str] = None) -> List[str]:
        """Roll back applied migrations newest first.

        Stops before ``target`` when given, so that migration stays applied;
        otherwise every applied migration is rolled back.
        """
        reverted: List[str] = []
        with self._backend(url) as backend, self._locked(backend):
            for migration in backend.to_rollback(self.migrations):
                if migration.id == target:
                    break
                try:
                    backend.rollback_one(migration)
                except backend.DatabaseError as e:
                    logger.error("Migration rollback failed", migration=migration.id, error=str(e))
                    raise MigrationExecutionError(migration.id, str(e)) from e
                reverted.append(migration.id)

        logger.info("Migrations rolled back", path=str(self.path), reverted=len(reverted), target=target)
        return reverted

    async def run_async(self, url: str) -> List[str]:
        """``run`` on the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self.run, url))

    async def undo_async(self, url: str, target: Optional[str] = None) -> List[str]:
        """``undo`` on the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self.undo, url, target))
