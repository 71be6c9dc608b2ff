"""Logging setup for the Trade Hub API process.

Service modules log under ``tradehub.*``. uvicorn's own ``uvicorn.error`` and
``uvicorn.access`` loggers are pointed at the same handlers, so request lines
and ledger events interleave in one stream. With ``Settings.LOG_TO_FILE`` on,
each launch also writes ``logs/run_YYYYMMDD_HHMMSS.log`` at DEBUG.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from settings import Settings

PROJECT_LOGGER = "tradehub"
SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access")

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level() -> int:
    level = logging.getLevelName(Settings.LOG_LEVEL)
    return level if isinstance(level, int) else logging.INFO


def _build_handlers() -> Tuple[List[logging.Handler], Optional[Path]]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_console_level())
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if not Settings.LOG_TO_FILE:
        return handlers, None

    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = Settings.LOGS_DIR / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    handlers.append(file_handler)
    return handlers, log_file


def setup_logging() -> Optional[Path]:
    """Attach console (and optionally file) handlers to the service loggers.

    Safe to call more than once; later calls leave existing handlers alone
    and return the file already in use.

    Returns:
        The run log file, or None when file logging is off.
    """
    project = logging.getLogger(PROJECT_LOGGER)
    if project.handlers:
        return getattr(project, "run_log_file", None)

    handlers, log_file = _build_handlers()
    project.setLevel(logging.DEBUG)
    for handler in handlers:
        project.addHandler(handler)
    project.run_log_file = log_file

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = list(handlers)
        server_logger.propagate = False

    project.info("Logging ready (console %s, file %s)", Settings.LOG_LEVEL, log_file or "off")
    return log_file
