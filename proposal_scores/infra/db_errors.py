"""Map asyncpg/PostgreSQL exceptions onto the package error hierarchy.

Gateways wrap each query in :class:`DatabaseErrorHandler` so callers only
ever see :class:`DatabaseError` or :class:`SystemError`, with the original
exception kept as ``cause``.
"""

from __future__ import annotations

import time
from types import TracebackType
from typing import Any, Dict, Optional

import asyncpg

from proposal_scores.infra.errors import DatabaseError, Error, SystemError

POSTGRES_ERROR_CODES = {
    # Connection errors
    "08000": "connection_exception",
    "08003": "connection_does_not_exist",
    "08006": "connection_failure",
    "08001": "sqlclient_unable_to_establish_sqlconnection",
    "08004": "sqlserver_rejected_establishment_of_sqlconnection",
    # Integrity constraint violations
    "23502": "not_null_violation",
    "23505": "unique_violation",
    "23514": "check_violation",
    # Lock/Deadlock errors
    "40001": "serialization_failure",
    "40P01": "deadlock_detected",
    # Timeout errors
    "57014": "query_canceled",
    # Configuration errors
    "42P01": "undefined_table",
    "42703": "undefined_column",
    "22P02": "invalid_text_representation",
}


def map_postgres_error(error: asyncpg.PostgresError) -> DatabaseError:
    """Map a PostgreSQL error to a DatabaseError with sqlstate context."""
    raw_sqlstate = getattr(error, "sqlstate", None)
    sqlstate: str | None = str(raw_sqlstate) if raw_sqlstate is not None else None
    message = str(error)

    context: Dict[str, Any] = {
        "sqlstate": sqlstate,
        "error_type": (
            POSTGRES_ERROR_CODES.get(sqlstate, "unknown_postgres_error")
            if sqlstate is not None
            else "unknown_postgres_error"
        ),
        "original_message": message,
    }

    table_name = getattr(error, "table_name", None)
    if table_name:
        context["table_name"] = table_name
    column_name = getattr(error, "column_name", None)
    if column_name:
        context["column_name"] = column_name

    if sqlstate in ("40001", "40P01"):
        context["retry_possible"] = True
    elif sqlstate == "57014":
        context["timeout"] = True
    elif sqlstate is not None and sqlstate.startswith("08"):
        context["connection_error"] = True

    return DatabaseError(message=message, context=context, cause=error)


def map_asyncpg_error(error: BaseException) -> Error:
    """Map any exception raised by asyncpg onto DatabaseError or SystemError."""
    if isinstance(error, asyncpg.PostgresError):
        return map_postgres_error(error)
    if isinstance(error, asyncpg.InterfaceError):
        return SystemError(
            message=f"Database interface error: {error}",
            context={"interface_error": True, "original_error": str(error)},
            cause=error,
        )
    if isinstance(error, TimeoutError):
        return SystemError(
            message=f"Database operation timed out: {error}",
            context={"timeout": True, "original_error": str(error)},
            cause=error,
        )
    return SystemError(
        message=f"Database error: {error}",
        context={"generic_db_error": True, "original_error": str(error)},
        cause=error,
    )


class DatabaseErrorHandler:
    """Async context manager re-raising database failures as package errors."""

    def __init__(self, operation: str, context: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.context = context or {}
        self.start_time: Optional[float] = None

    async def __aenter__(self) -> "DatabaseErrorHandler":
        self.start_time = time.monotonic()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        if exc_val is None or isinstance(exc_val, Error):
            return False
        if not isinstance(exc_val, (asyncpg.PostgresError, asyncpg.InterfaceError, TimeoutError)):
            return False

        duration = time.monotonic() - self.start_time if self.start_time else None
        mapped = map_asyncpg_error(exc_val)
        mapped.context.update(self.context)
        mapped.context["operation"] = self.operation
        mapped.context["duration_seconds"] = duration
        raise mapped from exc_val
