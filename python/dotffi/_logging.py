"""
Package logging.

Usage::

    from ._logging import logger

    logger.debug("Allocated text buffer", extra={"scope": "alloc", "size": 4})

Environment::

    DOTFFI_LOG_LEVEL=debug|info|warn|error|off (default: warn)
    DOTFFI_LOG_FORMAT=json|human (default: human if tty, json if piped)
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

__all__ = ["logger", "setup_logging"]

_NAME_TO_LEVEL = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}

_LEVEL_TO_SEVERITY = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

_STANDARD_FIELDS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "scope", "taskName"}


def _extra_attributes(record):
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_FIELDS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": dt.isoformat(timespec="microseconds").replace("+00:00", "Z"),
            "severityText": _LEVEL_TO_SEVERITY.get(record.levelno, "INFO"),
            "body": record.getMessage(),
            "attributes": {
                "scope": getattr(record, "scope", None) or record.name,
                **_extra_attributes(record),
            },
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [scope] message key=value``."""

    def format(self, record):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        severity = _LEVEL_TO_SEVERITY.get(record.levelno, "INFO")
        scope = getattr(record, "scope", None) or record.name
        parts = [f"{dt:%H:%M:%S} {severity:<5} [{scope}] {record.getMessage()}"]
        for key, value in _extra_attributes(record).items():
            parts.append(f" {key}={value}")
        text = "".join(parts)
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _get_log_level():
    level_name = os.environ.get("DOTFFI_LOG_LEVEL", "warn")
    return _NAME_TO_LEVEL.get(level_name.lower(), logging.WARNING)


def _get_log_format():
    fmt = os.environ.get("DOTFFI_LOG_FORMAT")
    if fmt:
        return fmt.lower()
    return "human" if sys.stderr.isatty() else "json"


def _create_handler(fmt=None):
    handler = logging.StreamHandler(sys.stderr)
    if (fmt or _get_log_format()) == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter())
    return handler


logger = logging.getLogger("dotffi")


def _setup_default_handler():
    # Leave user-configured logging alone
    if logger.handlers:
        return
    logger.addHandler(_create_handler())
    logger.setLevel(_get_log_level())


def setup_logging(level="WARN", format=None):
    """
    Configure dotffi logging.

    Parameters
    ----------
    level : str or int, default "WARN"
        Level name ("DEBUG", "INFO", "WARN", "ERROR", "OFF") or a
        ``logging`` constant.
    format : str, optional
        "json" or "human".  If not given, uses DOTFFI_LOG_FORMAT or
        auto-detects from the TTY.
    """
    if isinstance(level, str):
        level = _NAME_TO_LEVEL.get(level.lower(), logging.WARNING)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    logger.addHandler(_create_handler(format.lower() if format else None))
    logger.setLevel(level)


_setup_default_handler()
