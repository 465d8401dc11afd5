"""Process-wide guard against overlapping recomputation of the same proposal.

The guard lives in memory only: it is lost on restart and does not
coordinate across processes. A multi-instance deployment would need an
external lease keyed by proposal id instead.
"""

from __future__ import annotations

import structlog

LOGGER = structlog.get_logger(__name__)


class PendingRequestGuard:
    def __init__(self) -> None:
        self._pending: set[str] = set()

    def is_pending(self, proposal_id: str) -> bool:
        return proposal_id in self._pending

    def try_acquire(self, proposal_id: str) -> bool:
        """Mark ``proposal_id`` as in flight; False when it already is."""
        if proposal_id in self._pending:
            return False
        self._pending.add(proposal_id)
        LOGGER.debug("scores.guard.acquired", proposal_id=proposal_id)
        return True

    def release(self, proposal_id: str) -> None:
        if proposal_id in self._pending:
            self._pending.discard(proposal_id)
            LOGGER.debug("scores.guard.released", proposal_id=proposal_id)

    def held(self) -> frozenset[str]:
        return frozenset(self._pending)

    def clear(self) -> None:
        self._pending.clear()


# Shared by every ScoresService that is not given its own guard.
PENDING_REQUESTS = PendingRequestGuard()
