"""Root logger setup for cron runs."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# per-request INFO lines from the HTTP stack drown the per-merge progress log
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")


def configure_logging(*, debug: bool = False, force: bool = False) -> None:
    """Log to stderr at INFO, or DEBUG with ``debug``.

    Request logging from httpx is only kept in debug mode.
    """

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
