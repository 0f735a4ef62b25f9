"""Plain-text output for the operator.

Colour is only used when the stream is a terminal.
"""

from __future__ import annotations

import sys
from typing import TextIO

_RESET = "\033[0m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_CYAN = "\033[36m"


def _emit(message: str, stream: TextIO, color: str | None = None) -> None:
    if color and stream.isatty():
        message = f"{color}{message}{_RESET}"
    print(message, file=stream, flush=True)


def info(message: str) -> None:
    _emit(message, sys.stdout)


def success(message: str) -> None:
    _emit(message, sys.stdout, _GREEN)


def reminder(message: str) -> None:
    _emit(message, sys.stdout, _CYAN)


def warn(message: str) -> None:
    _emit(message, sys.stderr, _YELLOW)


def error(message: str) -> None:
    _emit(message, sys.stderr, _RED)
