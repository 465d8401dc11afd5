from __future__ import annotations

import json
import time
from typing import Any

from proposal_scores.infra.db_errors import DatabaseErrorHandler
from proposal_scores.infra.types.db import ConnectionProtocol
from proposal_scores.models import Proposal, ScoresResult, build_proposal


def dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _now() -> int:
    return int(time.time())


class ProposalGateway:
    """Read a proposal row and overwrite its aggregate score columns."""

    def __init__(self, *, table: str = "proposals") -> None:
        self._table = table

    async def fetch_proposal(
        self,
        connection: ConnectionProtocol,
        *,
        proposal_id: str,
        now: int | None = None,
    ) -> Proposal | None:
        sql = f"SELECT * FROM {self._table} WHERE id = $1 LIMIT 1"
        async with DatabaseErrorHandler("proposals.fetch", {"proposal_id": proposal_id}):
            row = await connection.fetchrow(sql, proposal_id)
        if row is None:
            return None
        return build_proposal(row, now=_now() if now is None else now)

    async def update_proposal_scores(
        self,
        connection: ConnectionProtocol,
        *,
        proposal_id: str,
        result: ScoresResult,
        votes: int,
        now: int | None = None,
    ) -> None:
        """Overwrite the aggregate; a row already marked final is left as is."""
        sql = f"""
            UPDATE {self._table}
            SET scores_state = $1,
                scores = $2,
                scores_by_strategy = $3,
                scores_total = $4,
                scores_updated = $5,
                votes = $6
            WHERE id = $7 AND scores_state IS DISTINCT FROM 'final'
        """
        async with DatabaseErrorHandler("proposals.update_scores", {"proposal_id": proposal_id}):
            await connection.execute(
                sql,
                result.scores_state,
                dump_json(result.scores),
                dump_json(result.scores_by_strategy),
                result.scores_total,
                _now() if now is None else now,
                votes,
                proposal_id,
            )
