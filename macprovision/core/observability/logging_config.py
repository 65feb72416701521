"""
Logging configuration — one call from the CLI sets up the whole process.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  MACPROV_LOG_LEVEL  >  WARNING

MACPROV_LOG_FILE adds a file handler (``~`` is expanded and missing
directories are created), at MACPROV_LOG_FILE_LEVEL or the console
level. File lines carry the thread name, so sudo keep-alive refreshes
can be told apart from step output.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ENV_LOG_LEVEL = "MACPROV_LOG_LEVEL"
ENV_LOG_FILE = "MACPROV_LOG_FILE"
ENV_LOG_FILE_LEVEL = "MACPROV_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# Console format per threshold: (max level, format, datefmt)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(message)s", "%H:%M:%S"),
)
_CONSOLE_PLAIN = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name from the global CLI flags, else the env var."""
    for flag, name in ((debug, "DEBUG"), (verbose, "INFO"), (quiet, "ERROR")):
        if flag:
            return name
    return os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LEVEL


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_PLAIN, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(log_file: str, level: int) -> logging.Handler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers.

    Args:
        level: Console level name. Unknown names fall back to WARNING.
        log_file: Optional log file path.
        log_file_level: Level for the file; the console level when unset.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must let through whatever the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
