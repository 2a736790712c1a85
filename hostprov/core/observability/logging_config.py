"""
Logging configuration for the installer entrypoint.

Console output is the operator's progress feed: at INFO each step is
a ``>>> message`` line, warnings and errors are prefixed with their
level. DEBUG adds the emitting module and line.

Environment:
    HOSTPROV_LOG_LEVEL       console level (default INFO)
    HOSTPROV_LOG_FILE        optional file that receives full detail
    HOSTPROV_LOG_FILE_LEVEL  file level (default: console level)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "HOSTPROV_LOG_LEVEL"
ENV_FILE = "HOSTPROV_LOG_FILE"
ENV_FILE_LEVEL = "HOSTPROV_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

_FMT_PROGRESS = ">>> %(message)s"
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class ProgressFormatter(logging.Formatter):
    """``>>> step`` for INFO, ``WARNING: ...`` / ``ERROR: ...`` above it."""

    def __init__(self) -> None:
        super().__init__(_FMT_PROGRESS)

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            saved = self._style._fmt
            self._style._fmt = f"{record.levelname}: %(message)s"
            try:
                return super().format(record)
            finally:
                self._style._fmt = saved
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Replaces any handlers already on the root logger.
    """
    numeric_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    if numeric_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_FMT_DEBUG, datefmt=_DATEFMT))
    else:
        console.setFormatter(ProgressFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)


def setup_logging_from_env(environ: Mapping[str, str] | None = None) -> None:
    """``setup_logging`` driven by the HOSTPROV_LOG_* variables."""
    env = os.environ if environ is None else environ
    setup_logging(
        level=env.get(ENV_LEVEL, "INFO"),
        log_file=env.get(ENV_FILE) or None,
        log_file_level=env.get(ENV_FILE_LEVEL) or None,
    )


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean INFO."""
    if not level:
        return logging.INFO
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.INFO
