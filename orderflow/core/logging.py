from __future__ import annotations

import logging
import sys

from orderflow.core.config import settings

LOGGER_NAME = "orderflow"


def setup_logging() -> logging.Logger:
    """
    Attach one stdout handler to the `orderflow` logger tree (batch
    summaries, config finalize and import, request lines) at LOG_LEVEL.

    create_app() runs this on every call; the handler is only added once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if any(getattr(h, "_orderflow", False) for h in logger.handlers):
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    handler._orderflow = True
    logger.addHandler(handler)
    return logger
