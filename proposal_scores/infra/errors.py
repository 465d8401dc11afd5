"""Error hierarchy shared by gateways, clients and services.

Each error carries a message, an optional context mapping and the
underlying cause, so callers can log a sanitised payload without losing
the original exception.
"""

from __future__ import annotations

from typing import Any, Mapping, cast

_SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "auth",
)


def _sanitize_context(context: Mapping[str, Any] | None) -> dict[str, Any]:
    """Mask values whose key names look secret-bearing, recursing into dicts."""
    if not context:
        return {}

    def _sanitize(value: Any) -> Any:
        if isinstance(value, dict):
            mapping = cast(Mapping[str, Any], value)
            return {
                k: (
                    "***redacted***"
                    if any(sk in str(k).lower() for sk in _SENSITIVE_KEYS)
                    else _sanitize(v)
                )
                for k, v in mapping.items()
            }
        return value

    sanitized: dict[str, Any] = {}
    for key, value in context.items():
        if any(sk in str(key).lower() for sk in _SENSITIVE_KEYS):
            sanitized[key] = "***redacted***"
        else:
            sanitized[key] = _sanitize(value)
    return sanitized


class Error(Exception):
    """Base error carrying a message, optional context and cause."""

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.cause: BaseException | None = cause

    def __str__(self) -> str:  # pragma: no cover - delegates to message
        return self.message

    def log_safe_context(self) -> dict[str, Any]:
        return _sanitize_context(self.context)


class DatabaseError(Error):
    """Persistence layer failure."""


class SystemError(Error):
    """Infrastructure failure (pool, interface, timeouts)."""


class ScoringServiceError(Error):
    """The score API rejected the request or could not be reached."""


class DecryptionServiceError(Error):
    """The decryption-key service could not be reached."""


class UnsupportedVotingTypeError(Error):
    """No aggregation algorithm is registered for a proposal type."""


__all__ = [
    "Error",
    "DatabaseError",
    "SystemError",
    "ScoringServiceError",
    "DecryptionServiceError",
    "UnsupportedVotingTypeError",
]
