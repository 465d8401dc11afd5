from __future__ import annotations

from typing import Sequence

from proposal_scores.db.gateway.proposals import dump_json
from proposal_scores.infra.db_errors import DatabaseErrorHandler
from proposal_scores.infra.types.db import ConnectionProtocol
from proposal_scores.models import Vote, build_vote


class VoteGateway:
    """Read the votes of a proposal and write back their voting power."""

    def __init__(self, *, table: str = "votes") -> None:
        self._table = table

    async def fetch_votes(
        self, connection: ConnectionProtocol, *, proposal_id: str
    ) -> list[Vote]:
        sql = f"""
            SELECT id, proposal, choice, voter, vp, vp_by_strategy, vp_state
            FROM {self._table}
            WHERE proposal = $1
        """
        async with DatabaseErrorHandler("votes.fetch", {"proposal_id": proposal_id}):
            rows = await connection.fetch(sql, proposal_id)
        return [build_vote(row) for row in rows]

    async def update_votes_vp_batch(
        self,
        connection: ConnectionProtocol,
        *,
        proposal_id: str,
        votes: Sequence[Vote],
        vp_state: str,
    ) -> None:
        """Write one batch atomically; each statement touches at most one row."""
        if not votes:
            return
        sql = f"""
            UPDATE {self._table}
            SET vp = $1, vp_by_strategy = $2, vp_state = $3
            WHERE id = $4 AND proposal = $5
        """
        params = [
            (vote.balance, dump_json(vote.scores), vp_state, vote.id, proposal_id)
            for vote in votes
        ]
        async with DatabaseErrorHandler(
            "votes.update_vp_batch", {"proposal_id": proposal_id, "batch_size": len(votes)}
        ):
            async with connection.transaction():
                await connection.executemany(sql, params)
