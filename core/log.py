"""
core/log.py -- Logging setup shared by the gateway, account and events apps.

Every module logs through a named logger under the "calendarium" hierarchy
(calendarium.gateway, calendarium.sessions, ...). Components accept a logger
in their constructor and fall back to get_logger(<name>) when none is given,
so nothing writes to a process-wide mutable logger behind the caller's back.

configure_logging() is the only place that touches the root handler. It is
idempotent: calling it from several app factories in one process (tests,
asgi.py) does not stack duplicate handlers.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ROOT_LOGGER = "calendarium"


def configure_logging(level: str = "INFO") -> None:
    """Install the standard log format and set the calendarium log level."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger(_ROOT_LOGGER).setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Return the calendarium.<name> logger."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
