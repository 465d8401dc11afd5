from __future__ import annotations

import asyncio
from typing import Any, cast
from weakref import WeakKeyDictionary

import asyncpg
import structlog
from dotenv import load_dotenv

from proposal_scores.config.db_settings import PoolConfig
from proposal_scores.infra.retry import exponential_backoff_with_jitter

LOGGER = structlog.get_logger(__name__)

_POOL_LOCKS: "WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = WeakKeyDictionary()
_POOLS: "WeakKeyDictionary[asyncio.AbstractEventLoop, asyncpg.Pool]" = WeakKeyDictionary()
_last_pool: asyncpg.Pool | None = None

# Raised while the server is starting up or unreachable.
_CONNECT_ERRORS: tuple[type[Exception], ...] = (
    OSError,
    asyncpg.CannotConnectNowError,
)


async def _create_pool(pool_config: PoolConfig) -> asyncpg.Pool:
    @exponential_backoff_with_jitter(
        max_attempts=pool_config.db_connect_attempts,
        initial_wait=0.5,
        max_wait=10.0,
        retry_on=_CONNECT_ERRORS,
    )
    async def _connect() -> asyncpg.Pool:
        _apg = cast(Any, asyncpg)
        return cast(
            asyncpg.Pool,
            await _apg.create_pool(
                dsn=pool_config.dsn,
                min_size=pool_config.min_size,
                max_size=pool_config.max_size,
            ),
        )

    return await _connect()


async def init_pool(config: PoolConfig | None = None) -> asyncpg.Pool:
    """Initialise the asyncpg pool for the running loop if it does not exist yet."""
    global _last_pool
    loop = asyncio.get_running_loop()
    existing = _POOLS.get(loop)
    if existing is not None:
        _last_pool = existing
        return existing

    lock = _get_pool_lock(loop)

    async with lock:
        pool = _POOLS.get(loop)
        if pool is not None:
            return pool

        if config is None:
            load_dotenv(override=False)
            pool_config = PoolConfig()  # type: ignore[call-arg]
        else:
            pool_config = config

        pool = await _create_pool(pool_config)
        _POOLS[loop] = pool
        _last_pool = pool

        LOGGER.info(
            "db.pool.initialised",
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
        )
        return pool


def get_pool() -> asyncpg.Pool:
    """Return the active pool or raise if it has not been initialised."""
    loop = _maybe_get_running_loop()
    if loop is not None:
        pool = _POOLS.get(loop)
        if pool is not None:
            return pool
    if _last_pool is not None:
        return _last_pool
    raise RuntimeError("Database pool not initialised. Call init_pool() first.")


async def close_pool() -> None:
    """Close the pool if one exists."""
    global _last_pool
    loop = asyncio.get_running_loop()
    lock = _get_pool_lock(loop)

    async with lock:
        pool = _POOLS.pop(loop, None)

    if pool is not None:
        await pool.close()
        if _last_pool is pool:
            _last_pool = None
        LOGGER.info("db.pool.closed")


def _get_pool_lock(loop: asyncio.AbstractEventLoop) -> asyncio.Lock:
    lock = _POOL_LOCKS.get(loop)
    if lock is None:
        lock = asyncio.Lock()
        _POOL_LOCKS[loop] = lock
    return lock


def _maybe_get_running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
