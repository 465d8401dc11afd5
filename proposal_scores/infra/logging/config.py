from __future__ import annotations

import logging
import os
import sys
from typing import Any, Mapping, MutableMapping, TextIO, cast

import structlog

_configured: bool = False

_SENSITIVE_KEYS = frozenset(
    {
        "token",
        "authorization",
        "password",
        "secret",
        "api_key",
        "apikey",
        "x-api-key",
        "score_api_key",
    }
)


def _add_msg_from_event(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> Mapping[str, Any]:
    """Mirror structlog's ``event`` into ``msg`` so every line carries both keys."""
    if "msg" not in event_dict and isinstance(event_dict.get("event"), str):
        event_dict["msg"] = event_dict["event"]
    return event_dict


def _mask(key: str, value: Any) -> Any:
    if isinstance(value, Mapping):
        nested = cast(Mapping[str, Any], value)
        return {k: _mask(str(k), v) for k, v in nested.items()}
    if isinstance(value, list):
        return [_mask(key, item) for item in cast(list[Any], value)]
    if key.lower() in _SENSITIVE_KEYS:
        return "[REDACTED]"
    return value


def _mask_sensitive_values(
    _: Any, __: str, event_dict: MutableMapping[str, Any]
) -> Mapping[str, Any]:
    """Redact secret-bearing keys (case-insensitive), recursing into dicts and lists."""
    return {key: _mask(key, value) for key, value in event_dict.items()}


def configure_logging(level: str | None = None, *, stream: TextIO | None = None) -> None:
    """Configure structlog over stdlib logging, one JSON object per line.

    Keys: ``ts`` (UTC ISO-8601), ``level``, ``msg``, ``event``.
    """
    global _configured

    raw_level: str = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, raw_level.upper(), logging.INFO)

    # force=True lets tests using capsys rebind the handler to the swapped stdout.
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=stream or sys.stdout,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            _add_msg_from_event,
            _mask_sensitive_values,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def is_configured() -> bool:
    return _configured
