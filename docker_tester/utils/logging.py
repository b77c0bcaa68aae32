"""structlog configuration.

Modules only call ``structlog.get_logger(__name__)``. The ``docker-tester``
command installs a stderr handler through ``setup_logging()``; the pytest
plugin calls ``configure_structlog()`` and leaves output to pytest's own log
capture.
"""

import logging
import re
import sys
from typing import List, Optional

import structlog

from .._version import __version__
from ..config import settings

# Chatty below WARNING while containers start and migrations run
QUIET_LOGGERS = ("docker", "urllib3", "asyncio", "yoyo")

CREDENTIALS_RE = re.compile(r"(postgres(?:ql)?://[^:/@\s]+):[^@\s]+@")


def redact_credentials(logger, method_name, event_dict):
    """Strip passwords from Postgres URLs in any string value."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "://" in value:
            event_dict[key] = CREDENTIALS_RE.sub(r"\1:***@", value)
    return event_dict


def add_service_context(logger, method_name, event_dict):
    event_dict["service"] = "docker-tester"
    event_dict["version"] = __version__
    return event_dict


def build_processors(log_format: str, colors: bool) -> List:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_service_context,
        redact_credentials,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def configure_structlog(colors: bool = False, cache_logger_on_first_use: bool = False) -> None:
    """Route structlog events through stdlib logging without adding handlers."""
    structlog.configure(
        processors=build_processors(settings.logging.format, colors),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=cache_logger_on_first_use,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure logging for the ``docker-tester`` command.

    Args:
        level: Overrides ``LOG_LEVEL`` when given
    """
    level_name = (level or settings.logging.level).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )
    configure_structlog(colors=sys.stderr.isatty(), cache_logger_on_first_use=True)
