"""Structured JSON-lines logging."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Optional, TextIO


class LogLevel(IntEnum):
    """Severity of a log entry."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3


def _timestamp() -> str:
    now = datetime.now().astimezone().replace(microsecond=0)
    if now.utcoffset() == timedelta(0):
        return now.strftime("%Y-%m-%dT%H:%M:%SZ")
    return now.isoformat()


class Logger:
    """Writes one JSON object per entry; errors also go to stderr."""

    def __init__(
        self, level: LogLevel, output: Optional[TextIO], debug: bool = False
    ) -> None:
        self.level = LogLevel(level)
        self.output = output
        self.debug_enabled = debug

    def log(self, level: LogLevel, format: str, *args) -> None:
        """Write an entry if level is at or above the logger's level."""
        if level < self.level:
            return
        message = format % args if args else format
        entry = {
            "timestamp": _timestamp(),
            "level": LogLevel(level).name,
            "message": message,
        }
        stream = self.output if self.output is not None else sys.stdout
        stream.write(json.dumps(entry, ensure_ascii=False, separators=(",", ":")))
        stream.write("\n")
        if level == LogLevel.ERROR:
            print(message, file=sys.stderr)

    def debug(self, format: str, *args) -> None:
        self.log(LogLevel.DEBUG, format, *args)

    def info(self, format: str, *args) -> None:
        self.log(LogLevel.INFO, format, *args)

    def warn(self, format: str, *args) -> None:
        self.log(LogLevel.WARN, format, *args)

    def error(self, format: str, *args) -> None:
        self.log(LogLevel.ERROR, format, *args)


_default = Logger(LogLevel.INFO, None, False)


def set_debug(debug: bool) -> None:
    """Turn debug mode on or off for the default logger."""
    _default.debug_enabled = debug
    if debug:
        _default.level = LogLevel.DEBUG


def debug(format: str, *args) -> None:
    _default.log(LogLevel.DEBUG, format, *args)


def info(format: str, *args) -> None:
    _default.log(LogLevel.INFO, format, *args)


def warn(format: str, *args) -> None:
    _default.log(LogLevel.WARN, format, *args)


def error(format: str, *args) -> None:
    _default.log(LogLevel.ERROR, format, *args)