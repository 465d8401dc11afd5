"""Score recomputation services."""

from __future__ import annotations

from proposal_scores.services.pending_guard import PENDING_REQUESTS, PendingRequestGuard
from proposal_scores.services.scores_service import ScoresService
from proposal_scores.services.vote_power_updater import VotePowerUpdater

__all__ = ["PENDING_REQUESTS", "PendingRequestGuard", "ScoresService", "VotePowerUpdater"]
