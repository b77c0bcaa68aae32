"""docker-tester command line.

Usage:
  docker-tester run postgres:14-alpine --port 5432 -e POSTGRES_PASSWORD=secret
  docker-tester stop 3f2a9c1b7d4e
  docker-tester postgres --migrations ./migrations
  docker-tester cleanup
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ._version import __version__
from .config import settings
from .models import ContainerHandle, DockerTesterException
from .services.container import get_container_manager
from .services.database import disposable_postgres
from .utils.logging import setup_logging

console = Console()
err_console = Console(stderr=True)


def parse_env(value: str) -> Tuple[str, str]:
    """argparse type for ``KEY=VALUE`` pairs."""
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def render_container(handle: ContainerHandle) -> Panel:
    table = Table(show_header=False, box=None)
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Image", handle.image)
    table.add_row("ContainerID", handle.id)
    table.add_row("Host", handle.address)
    return Panel(table, title="Docker Started", border_style="green", box=box.ROUNDED)


def cmd_run(args) -> int:
    manager = get_container_manager()
    handle = manager.start_container(args.image, args.port, environment=dict(args.env))
    if args.quiet:
        console.print(handle.id)
    else:
        console.print(render_container(handle))
    return 0


def cmd_stop(args) -> int:
    manager = get_container_manager()
    for container_id in args.ids:
        manager.stop_container(container_id)
        console.print(f"[green]Removed[/green] {container_id}")
    return 0


def cmd_cleanup(args) -> int:
    removed = get_container_manager().cleanup_managed()
    if not removed:
        console.print("[dim]No managed containers found[/dim]")
    for container_id in removed:
        console.print(f"[green]Removed[/green] {container_id}")
    return 0


async def _serve_postgres(args) -> None:
    async with disposable_postgres(args.migrations, image=args.image) as db:
        table = Table(show_header=False, box=None)
        table.add_column(style="bold cyan")
        table.add_column()
        table.add_row("ContainerID", db.container_id)
        table.add_row("Database", db.dbname)
        table.add_row("URL", db.url())
        console.print(Panel(table, title="Postgres Ready", border_style="green", box=box.ROUNDED))
        console.print("[dim]Press Ctrl+C to drop the database[/dim]")
        await asyncio.Event().wait()


def cmd_postgres(args) -> int:
    try:
        asyncio.run(_serve_postgres(args))
    except KeyboardInterrupt:
        console.print("[yellow]Postgres container dropped[/yellow]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docker-tester",
        description="Start and remove Docker containers for tests",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Start a container and print its address")
    run_parser.add_argument("image", help="Image to run, e.g. postgres:14-alpine")
    run_parser.add_argument("--port", "-p", required=True, help="Container port to resolve, e.g. 5432")
    run_parser.add_argument(
        "--env", "-e", action="append", type=parse_env, default=[], metavar="KEY=VALUE", help="Environment variable"
    )
    run_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the container id")
    run_parser.set_defaults(func=cmd_run)

    stop_parser = subparsers.add_parser("stop", help="Stop and remove containers")
    stop_parser.add_argument("ids", nargs="+", metavar="ID")
    stop_parser.set_defaults(func=cmd_stop)

    pg_parser = subparsers.add_parser("postgres", help="Start a migrated Postgres database until interrupted")
    pg_parser.add_argument("--migrations", "-m", default=None, help="Directory of SQL migrations")
    pg_parser.add_argument("--image", default=None, help=f"Postgres image (default {settings.postgres.image})")
    pg_parser.set_defaults(func=cmd_postgres)

    cleanup_parser = subparsers.add_parser("cleanup", help="Remove every container started by docker-tester")
    cleanup_parser.set_defaults(func=cmd_cleanup)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        return args.func(args)
    except DockerTesterException as e:
        err_console.print(f"[red]Error:[/red] {escape(e.message)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
