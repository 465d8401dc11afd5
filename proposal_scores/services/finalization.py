from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from proposal_scores.constants import FINALIZE_SCORE_SECONDS_DELAY

LOGGER = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


def finalization_delay(
    end: int, now: int, *, window: int = FINALIZE_SCORE_SECONDS_DELAY
) -> float:
    """Seconds left in the post-end grace window; 0 before ``end`` or once it has passed."""
    if end > now:
        return 0.0
    return float(max(window - (now - end), 0))


async def wait_for_finalization(
    *,
    proposal_id: str,
    end: int,
    now: int,
    sleep: Sleeper = asyncio.sleep,
    window: int = FINALIZE_SCORE_SECONDS_DELAY,
) -> float:
    """Suspend until last-minute votes have had time to land; returns the delay used."""
    delay = finalization_delay(end, now, window=window)
    if delay > 0:
        LOGGER.info("scores.finalization.waiting", proposal_id=proposal_id, seconds=delay)
        await sleep(delay)
    return delay
