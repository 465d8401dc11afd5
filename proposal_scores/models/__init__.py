"""Plain data models for proposals, votes and score results."""

from __future__ import annotations

from proposal_scores.models.proposal_models import (
    Proposal,
    ScoresResult,
    build_proposal,
    derive_proposal_state,
    parse_json_field,
)
from proposal_scores.models.vote_models import ScoreApiResult, Vote, build_vote

__all__ = [
    "Proposal",
    "ScoresResult",
    "ScoreApiResult",
    "Vote",
    "build_proposal",
    "build_vote",
    "derive_proposal_state",
    "parse_json_field",
]
