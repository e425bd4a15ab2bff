"""Logging for acp-bridge.

Everything logs under the ``acp_bridge`` logger, one child per component
(``acp_bridge.transport``, ``acp_bridge.jsonrpc``, ...). ``TRACE`` sits below
DEBUG and covers single JSON-RPC frames and writes dropped on a closed socket.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acp_bridge.config import LoggingConfig

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger("acp_bridge")

# -v count: quiet, default, -v, -vv, -vvv
VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG, TRACE)
DEFAULT_LEVEL = logging.WARNING

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def level_for(config: LoggingConfig | None) -> int:
    """Resolve the log level; ``verbose`` wins over ``level``.

    ``verbose`` counts from 0 (errors only); the CLI passes ``-v`` count + 1
    so a bare ``-v`` means info.
    """
    if config is None:
        return DEFAULT_LEVEL
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(VERBOSITY_LEVELS) - 1)
        return VERBOSITY_LEVELS[index]
    if config.level:
        level = logging.getLevelName(config.level.upper())
        if isinstance(level, int):
            return level
    return DEFAULT_LEVEL


def _owned(handler: logging.Handler) -> bool:
    return getattr(handler, "acp_bridge", False)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Set the package level and attach one handler.

    The handler writes to ``config.file`` (or ``ACP_BRIDGE_LOG``) when set,
    otherwise to stderr, and only when stderr is a terminal. Calling again
    only changes the level.
    """
    level = level_for(config)
    logger.setLevel(level)
    if any(_owned(h) for h in logger.handlers):
        return

    path = (config.file if config is not None else None) or os.environ.get("ACP_BRIDGE_LOG")
    handler: logging.Handler | None = None
    failure: OSError | None = None
    if path:
        try:
            handler = logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
        except OSError as e:
            failure = e
    if handler is None and sys.stderr.isatty():
        handler = logging.StreamHandler(sys.stderr)
    if handler is None:
        return

    handler.acp_bridge = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    if failure is not None:
        logger.warning("Cannot open log file %s: %s", path, failure)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or its child ``name``."""
    return logger.getChild(name) if name else logger
