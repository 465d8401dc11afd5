from __future__ import annotations

# Grace window after a proposal's end before scores are treated as final.
FINALIZE_SCORE_SECONDS_DELAY = 60

# Proposals above this vote count are throttled and guarded.
HOT_PROPOSAL_VOTES_THRESHOLD = 20_000
HOT_PROPOSAL_REFRESH_SECONDS = 300

VOTES_VP_BATCH_SIZE = 200
VOTES_VP_BATCH_DELAY_SECONDS = 0.2

PROPOSAL_STATE_PENDING = "pending"
PROPOSAL_STATE_ACTIVE = "active"
PROPOSAL_STATE_CLOSED = "closed"

SCORES_STATE_PENDING = "pending"
SCORES_STATE_FINAL = "final"

PRIVACY_SHUTTER = "shutter"

__all__ = [
    "FINALIZE_SCORE_SECONDS_DELAY",
    "HOT_PROPOSAL_VOTES_THRESHOLD",
    "HOT_PROPOSAL_REFRESH_SECONDS",
    "VOTES_VP_BATCH_SIZE",
    "VOTES_VP_BATCH_DELAY_SECONDS",
    "PROPOSAL_STATE_PENDING",
    "PROPOSAL_STATE_ACTIVE",
    "PROPOSAL_STATE_CLOSED",
    "SCORES_STATE_PENDING",
    "SCORES_STATE_FINAL",
    "PRIVACY_SHUTTER",
]
