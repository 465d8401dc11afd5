from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from proposal_scores.constants import (
    PROPOSAL_STATE_ACTIVE,
    PROPOSAL_STATE_CLOSED,
    PROPOSAL_STATE_PENDING,
    SCORES_STATE_FINAL,
    SCORES_STATE_PENDING,
)

__all__ = [
    "Proposal",
    "ScoresResult",
    "build_proposal",
    "derive_proposal_state",
    "parse_json_field",
]


@dataclass(slots=True)
class Proposal:
    id: str
    space: str
    network: str
    snapshot: int
    type: str
    privacy: str
    start: int
    end: int
    state: str
    scores_state: str
    strategies: list[dict[str, Any]] = field(default_factory=list)
    plugins: dict[str, Any] = field(default_factory=dict)
    choices: list[str] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    scores_by_strategy: list[list[float]] = field(default_factory=list)
    scores_total: float = 0.0
    scores_updated: int = 0
    votes: int = 0

    @property
    def is_closed(self) -> bool:
        return self.state == PROPOSAL_STATE_CLOSED

    @property
    def is_final(self) -> bool:
        return self.scores_state == SCORES_STATE_FINAL


@dataclass(slots=True, frozen=True)
class ScoresResult:
    """Aggregate tallies written back onto a proposal row."""

    scores_state: str
    scores: list[float]
    scores_by_strategy: list[list[float]]
    scores_total: float


def derive_proposal_state(start: int, end: int, now: int) -> str:
    if now >= end:
        return PROPOSAL_STATE_CLOSED
    if now >= start:
        return PROPOSAL_STATE_ACTIVE
    return PROPOSAL_STATE_PENDING


def parse_json_field(raw: Any, default: Any) -> Any:
    """Decode a JSON-as-text column; NULL and empty text fall back to ``default``."""
    if raw is None:
        return default
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return default
        return json.loads(raw)
    # Already decoded (e.g. json/jsonb codec on the connection)
    return raw


def build_proposal(row: Mapping[str, Any], *, now: int) -> Proposal:
    start = int(row["start"])
    end = int(row["end"])
    return Proposal(
        id=str(row["id"]),
        space=str(row.get("space") or ""),
        network=str(row.get("network") or "1"),
        snapshot=int(row.get("snapshot") or 0),
        type=str(row.get("type") or "single-choice"),
        privacy=str(row.get("privacy") or ""),
        start=start,
        end=end,
        state=derive_proposal_state(start, end, now),
        scores_state=str(row.get("scores_state") or SCORES_STATE_PENDING),
        strategies=list(parse_json_field(row.get("strategies"), [])),
        plugins=dict(parse_json_field(row.get("plugins"), {})),
        choices=list(parse_json_field(row.get("choices"), [])),
        scores=list(parse_json_field(row.get("scores"), [])),
        scores_by_strategy=list(parse_json_field(row.get("scores_by_strategy"), [])),
        scores_total=float(row.get("scores_total") or 0),
        scores_updated=int(row.get("scores_updated") or 0),
        votes=int(row.get("votes") or 0),
    )
