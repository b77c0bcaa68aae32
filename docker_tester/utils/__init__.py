"""Utility modules for docker-tester."""

from .logging import configure_structlog, setup_logging

__all__ = [
    "configure_structlog",
    "setup_logging",
]
