"""Leveled diagnostics for state machines, routed through stdlib logging."""
from __future__ import annotations

import logging
import sys
from enum import IntEnum
from typing import Any, TextIO

_LOGGER_NAME = "tick_machine"
_RESET = "\033[0m"

logger = logging.getLogger(_LOGGER_NAME)


class Level(IntEnum):
    TRACE = 1
    WARN = 2
    ERROR = 3
    CRITICAL = 4

    @property
    def logging_level(self) -> int:
        return _LOGGING_LEVELS[self]

    @property
    def label(self) -> str:
        return self.name.capitalize()


_LOGGING_LEVELS = {
    Level.TRACE: logging.DEBUG,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
    Level.CRITICAL: logging.CRITICAL,
}

_COLORS = {
    Level.TRACE: "\033[96m",
    Level.WARN: "\033[93m",
    Level.ERROR: "\033[31m",
    Level.CRITICAL: "\033[91m",
}


def level_for(levelno: int) -> Level | None:
    """Map a logging level number onto the closest diagnostic level.

    INFO has no diagnostic counterpart and maps to ``None``; records at that
    level come from application code sharing the package logger.
    """
    if levelno >= logging.CRITICAL:
        return Level.CRITICAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return None
    return Level.TRACE


def report(level: Level, msg: str, *args: Any, stacklevel: int = 1) -> None:
    """Emit a diagnostic on the package logger.

    ``stacklevel`` counts frames above the caller of ``report`` so the
    record's file and line point at the code that drove the machine.
    """
    logger.log(level.logging_level, msg, *args, stacklevel=stacklevel + 1)


class DiagnosticFormatter(logging.Formatter):
    """Render records as ``[Label] file:line message``."""

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = level_for(record.levelno)
        if level is None:
            label = "[Info]"
        else:
            label = f"[{level.label}]"
            if self.color:
                label = f"{_COLORS[level]}{label}{_RESET}"
        line = f"{label} {record.filename}:{record.lineno} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logger(
    level: int | str = "INFO",
    color: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach a console handler to the package logger.

    Handlers from earlier calls are replaced and records stop propagating
    to the root logger, so each diagnostic is printed once. Unknown level
    names fall back to INFO.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(DiagnosticFormatter(color=color))
    logger.addHandler(handler)
    return logger
