"""
Request context and logging state.

The request id lives in a ContextVar so that every log line emitted while
handling a request, across awaits, carries the same id. Level and
configuration are process-wide.

Environment Variables:
    - TTS_GATEWAY_LOG_LEVEL: level (1-4 or name)
    - TTS_GATEWAY_LOG_DIR: directory for the JSONL log file
    - TTS_GATEWAY_JSONL_FILE: JSONL file name
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict, Optional

from .levels import LEVEL_NAMES, LogLevel

# "-" outside of a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context for log correlation."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def read_logging_config(base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Resolve logging configuration.

    Args:
        base: Values from the settings file (level, log_dir, jsonl_file).

    Returns:
        Configuration dict with environment overrides applied on top.
    """
    cfg: Dict[str, Any] = dict(base or {})

    if os.getenv("TTS_GATEWAY_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_GATEWAY_LOG_LEVEL"]
    if os.getenv("TTS_GATEWAY_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_GATEWAY_LOG_DIR"]
    if os.getenv("TTS_GATEWAY_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_GATEWAY_JSONL_FILE"]

    return cfg
