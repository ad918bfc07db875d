"""Logging setup for consolegate.

The gateway's own loggers and uvicorn's share one set of handlers, so
server and bridge records end up in the same stream and file. uvicorn is
started with ``log_config=None`` and leaves these loggers alone.
"""

from __future__ import annotations

import logging
import sys

from consolegate.config.settings import LoggingConfig

LOGGER_NAMES = ("consolegate", "uvicorn")

# set on every handler installed here so a second call can replace them
_HANDLER_MARK = "_consolegate_handler"


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install stderr (and optionally file) handlers at the configured level.

    Safe to call more than once: handlers from a previous call are removed
    and closed before the new ones are attached.
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)

    for name in LOGGER_NAMES:
        target = logging.getLogger(name)
        for old in [h for h in target.handlers if getattr(h, _HANDLER_MARK, False)]:
            target.removeHandler(old)
            old.close()
        target.setLevel(level)
        for handler in handlers:
            target.addHandler(handler)

    logging.getLogger("consolegate").debug("Logging configured at %s", config.level)
