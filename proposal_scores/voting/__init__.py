"""Aggregation algorithms keyed by proposal type.

Adding a proposal type means adding a ``VotingAlgorithm`` subclass and
listing it in ``VOTING_TYPES``; the dispatcher itself does not change.
"""

from __future__ import annotations

from typing import Any, Sequence

from proposal_scores.infra.errors import UnsupportedVotingTypeError
from proposal_scores.models import Proposal, Vote
from proposal_scores.voting.base import ChoiceWeightVoting, VotingAlgorithm
from proposal_scores.voting.ranked_choice import RankedChoiceVoting
from proposal_scores.voting.single_choice import ApprovalVoting, BasicVoting, SingleChoiceVoting
from proposal_scores.voting.strategies import has_strategy_override
from proposal_scores.voting.weighted import QuadraticVoting, WeightedVoting

VOTING_TYPES: dict[str, type[VotingAlgorithm]] = {
    cls.type_name: cls
    for cls in (
        SingleChoiceVoting,
        BasicVoting,
        ApprovalVoting,
        WeightedVoting,
        QuadraticVoting,
        RankedChoiceVoting,
    )
}


def get_voting_algorithm(
    proposal: Proposal,
    votes: Sequence[Vote],
    strategies: Sequence[dict[str, Any]],
) -> VotingAlgorithm:
    voting_cls = VOTING_TYPES.get(proposal.type)
    if voting_cls is None:
        raise UnsupportedVotingTypeError(
            f"Unsupported proposal type: {proposal.type}",
            context={"proposal_id": proposal.id, "type": proposal.type},
        )
    return voting_cls(proposal, votes, strategies)


__all__ = [
    "VOTING_TYPES",
    "VotingAlgorithm",
    "ChoiceWeightVoting",
    "ApprovalVoting",
    "BasicVoting",
    "QuadraticVoting",
    "RankedChoiceVoting",
    "SingleChoiceVoting",
    "WeightedVoting",
    "get_voting_algorithm",
    "has_strategy_override",
]
