"""Leveled terminal logging.

A ``Log`` is owned by the RenderContext (no process-wide level). Messages
use ``%``-style arguments and go to stderr with coloured level labels.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from typing import TextIO


class LogLevel(IntEnum):
    """Verbosity threshold; a message prints when its level <= the log's."""

    NONE = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    VERBOSE = 4


# ---------------------------------------------------------------------------
# ANSI helpers, off under NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------


def _supports_color(stream: TextIO) -> bool:
    """Return True if *stream* is a terminal that supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(stream, "isatty") and stream.isatty()


_RESET = "\033[0m"
_GRAY = "\033[90m"
_MAGENTA = "\033[35m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_BG_RED = "\033[41m"


class Log:
    """Leveled logger writing to a text stream.

    Args:
        level: Messages above this level are dropped.
        stream: Output stream (default: ``sys.stderr`` at write time, so
            test capture works).

    """

    __slots__ = ("_stream", "level")

    def __init__(self, level: LogLevel = LogLevel.INFO, stream: TextIO | None = None) -> None:
        self.level = level
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def verbose(self, category: str, msg: str, *args: object) -> None:
        if self.level >= LogLevel.VERBOSE:
            self._write(
                f"{self._paint('VERBOSE', _MAGENTA)} {self._paint(category, _GRAY)} ",
                msg,
                args,
            )

    def info(self, msg: str, *args: object) -> None:
        if self.level >= LogLevel.INFO:
            self._write(f"{self._paint('INFO', _GREEN)} ", msg, args)

    def warning(self, msg: str, *args: object) -> None:
        if self.level >= LogLevel.WARNING:
            self._write(f"{self._paint('WARNING', _YELLOW)} ", msg, args)

    def error(self, msg: str, *args: object) -> None:
        if self.level >= LogLevel.ERROR:
            self._write(f"{self._paint('ERROR', _BG_RED)} ", msg, args)

    def _paint(self, text: str, color: str) -> str:
        if _supports_color(self.stream):
            return f"{color}{text}{_RESET}"
        return text

    def _write(self, prefix: str, msg: str, args: tuple[object, ...]) -> None:
        text = msg % args if args else msg
        print(prefix + text, file=self.stream)
