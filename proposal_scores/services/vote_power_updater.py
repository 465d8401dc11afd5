from __future__ import annotations

import asyncio
import hashlib
import json
from typing import Any, Iterator, Sequence, TypeVar

import structlog

from proposal_scores.constants import VOTES_VP_BATCH_DELAY_SECONDS, VOTES_VP_BATCH_SIZE
from proposal_scores.db.gateway.votes import VoteGateway
from proposal_scores.infra.types.db import PoolProtocol
from proposal_scores.models import Vote
from proposal_scores.services.finalization import Sleeper

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")


def _canonical(value: Any) -> Any:
    # bool is an int subclass; keep it distinct from 1.0
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def vote_fingerprint(power: Any, powers_by_strategy: Any, state: str) -> str:
    """Stable sha256 over ``(power, per-strategy powers, state)``.

    Numbers are normalised to floats and mapping keys sorted, so ``10`` and
    ``10.0`` or differently ordered maps hash identically.
    """
    payload = json.dumps(
        _canonical([power, powers_by_strategy, state]),
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def votes_with_change(votes: Sequence[Vote], vp_state: str) -> list[Vote]:
    return [
        vote
        for vote in votes
        if vote_fingerprint(vote.balance, vote.scores, vp_state)
        != vote_fingerprint(vote.vp, vote.vp_by_strategy, vote.vp_state)
    ]


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError("size must be >= 1")
    for offset in range(0, len(items), size):
        yield items[offset : offset + size]


class VotePowerUpdater:
    """Persist recomputed voting power for the votes whose values changed."""

    def __init__(
        self,
        pool: PoolProtocol,
        *,
        gateway: VoteGateway | None = None,
        batch_size: int = VOTES_VP_BATCH_SIZE,
        batch_delay: float = VOTES_VP_BATCH_DELAY_SECONDS,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._pool = pool
        self._gateway = gateway or VoteGateway()
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

    async def update_votes_vp(
        self, votes: Sequence[Vote], vp_state: str, proposal_id: str
    ) -> int:
        """Write changed votes in order, batch by batch; returns how many changed.

        A failing batch aborts the rest; batches already written stay written.
        """
        changed = votes_with_change(votes, vp_state)
        if not changed:
            return 0

        for index, batch in enumerate(chunked(changed, self._batch_size)):
            if index:
                await self._sleep(self._batch_delay)
            async with self._pool.acquire() as conn:
                await self._gateway.update_votes_vp_batch(
                    conn, proposal_id=proposal_id, votes=batch, vp_state=vp_state
                )

        LOGGER.info(
            "scores.votes_vp.updated",
            proposal_id=proposal_id,
            changed=len(changed),
            total=len(votes),
            vp_state=vp_state,
        )
        return len(changed)
