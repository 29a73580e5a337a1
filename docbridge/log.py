"""loguru setup for docbridge processes.

opensearch-py reports every request through stdlib ``logging``; those records
are bridged into loguru so the CLI and applications get one stream.  With
``serialize=True`` each record is written as a JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Request-level chatter from the search client and its HTTP pool.
CLIENT_LOGGERS = ("opensearch", "opensearchpy", "urllib3")


class _LoguruBridge(logging.Handler):
    """Forward stdlib records to loguru, keeping the original call-site."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(stdlib=record.name).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    *,
    serialize: bool = False,
    client_level: str = "WARNING",
    quiet: Iterable[str] = CLIENT_LOGGERS,
) -> None:
    """Make loguru the only sink and route stdlib logging into it.

    *client_level* caps the loggers named in *quiet* so a commit does not
    print one line per HTTP request.  Call once at process start.
    """
    level = level.upper()
    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    logging.basicConfig(handlers=[_LoguruBridge()], level=0, force=True)
    for name in quiet:
        logging.getLogger(name).setLevel(client_level.upper())

    logger.debug("Logging configured (level={}, serialize={})", level, serialize)
