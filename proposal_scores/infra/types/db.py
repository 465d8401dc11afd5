"""Typing protocols for the asyncpg pool/connection surface we use.

Real ``asyncpg`` objects satisfy these structurally; tests substitute
``AsyncMock`` instances.
"""

from __future__ import annotations

from typing import Any, AsyncContextManager, Iterable, Protocol, Sequence


class ConnectionProtocol(Protocol):
    async def fetchrow(
        self, query: Any, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> Any: ...

    async def fetch(
        self, query: Any, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[Any]: ...

    async def execute(
        self, query: Any, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> Any: ...

    async def executemany(
        self,
        command: Any,
        args: Iterable[Sequence[Any]],
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> None: ...

    def transaction(
        self,
        *,
        isolation: Any | None = None,
        readonly: bool = False,
        deferrable: bool = False,
    ) -> AsyncContextManager[Any]: ...


class PoolProtocol(Protocol):
    def acquire(
        self, *, timeout: float | None = None
    ) -> AsyncContextManager[ConnectionProtocol]: ...


__all__ = [
    "ConnectionProtocol",
    "PoolProtocol",
]
