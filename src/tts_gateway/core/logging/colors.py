"""
ANSI colors for console log output.

Colors are disabled when stdout is not a TTY, when NO_COLOR is set
(https://no-color.org/) or when TTS_GATEWAY_NO_COLOR=1.
"""
from __future__ import annotations

import os
import sys


class Colors:
    RESET = "\033[0m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def supports_color() -> bool:
    """Return True if ANSI colors should be written to stdout."""
    if os.getenv("TTS_GATEWAY_NO_COLOR", "0") == "1":
        return False
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None or not isatty():
        return False
    return True


# Checked at import time; configure_logging() re-checks it.
USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    if not USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


def get_tag_color(tag: str) -> str:
    """Color for a log tag such as INFO or FAIL."""
    tag_colors = {
        "SUCCESS": Colors.BRIGHT_GREEN,
        "FAIL": Colors.BRIGHT_RED,
        "ERROR": Colors.BRIGHT_RED,
        "WARN": Colors.BRIGHT_YELLOW,
        "WARNING": Colors.BRIGHT_YELLOW,
        "INFO": Colors.BRIGHT_CYAN,
        "DEBUG": Colors.GRAY,
    }
    return tag_colors.get(tag.upper(), Colors.WHITE)


def get_status_color(status: int) -> str:
    """Color for an HTTP status code: green 2xx, yellow 4xx, red 5xx."""
    if status >= 500:
        return Colors.RED
    if status >= 400:
        return Colors.YELLOW
    if status >= 300:
        return Colors.CYAN
    return Colors.GREEN
