"""Database services: disposable Postgres instances and SQL migrations."""

from .migrations import MigrationRunner, read_sql_migrations
from .postgres import TestPostgres, disposable_postgres

__all__ = [
    "MigrationRunner",
    "TestPostgres",
    "disposable_postgres",
    "read_sql_migrations",
]
