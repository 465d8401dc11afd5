from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from proposal_scores.constants import SCORES_STATE_PENDING
from proposal_scores.models.proposal_models import parse_json_field

__all__ = ["ScoreApiResult", "Vote", "build_vote"]


@dataclass(slots=True)
class Vote:
    """A vote row plus the working power fields used during recomputation.

    ``vp``/``vp_by_strategy``/``vp_state`` mirror what is persisted;
    ``balance``/``scores`` start as copies and are overwritten when power
    is recomputed.
    """

    id: str
    voter: str
    choice: Any
    vp: float
    vp_by_strategy: list[float]
    vp_state: str
    balance: float = 0.0
    scores: list[float] = field(default_factory=list)
    proposal: str = ""


@dataclass(slots=True, frozen=True)
class ScoreApiResult:
    # One {voter: power} map per strategy, in strategy order.
    scores: list[dict[str, float]]
    state: str


def build_vote(row: Mapping[str, Any]) -> Vote:
    vp = float(row.get("vp") or 0)
    vp_by_strategy = [float(v) for v in parse_json_field(row.get("vp_by_strategy"), [])]
    return Vote(
        id=str(row["id"]),
        voter=str(row["voter"]),
        choice=parse_json_field(row.get("choice"), None),
        vp=vp,
        vp_by_strategy=vp_by_strategy,
        vp_state=str(row.get("vp_state") or SCORES_STATE_PENDING),
        balance=vp,
        scores=list(vp_by_strategy),
        proposal=str(row.get("proposal") or ""),
    )
