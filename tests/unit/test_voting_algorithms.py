"""Unit tests for the per-type aggregation algorithms."""

from __future__ import annotations

import json
from typing import Any

import pytest

from proposal_scores.infra.errors import UnsupportedVotingTypeError
from proposal_scores.models import Proposal, Vote, build_proposal
from proposal_scores.voting import (
    VOTING_TYPES,
    ApprovalVoting,
    BasicVoting,
    ChoiceWeightVoting,
    QuadraticVoting,
    RankedChoiceVoting,
    SingleChoiceVoting,
    VotingAlgorithm,
    WeightedVoting,
    get_voting_algorithm,
)
from tests.fixtures.scores_fixtures import NOW, make_proposal_row

ONE_STRATEGY = [{"name": "erc20-balance-of", "params": {}}]
TWO_STRATEGIES = [{"name": "erc20-balance-of", "params": {}}, {"name": "ticket", "params": {}}]


def _proposal(voting_type: str, choices: list[str], strategies: list[dict[str, Any]]) -> Proposal:
    row = make_proposal_row(
        type=voting_type, choices=json.dumps(choices), strategies=json.dumps(strategies)
    )
    return build_proposal(row, now=NOW)


def _vote(choice: Any, *scores: float) -> Vote:
    powers = list(scores)
    return Vote(
        id=f"v-{choice!r}-{powers!r}",
        voter="0xvoter",
        choice=choice,
        vp=0,
        vp_by_strategy=[],
        vp_state="pending",
        balance=sum(powers),
        scores=powers,
    )


@pytest.mark.unit
def test_registry_covers_every_type() -> None:
    assert set(VOTING_TYPES) == {
        "single-choice",
        "basic",
        "approval",
        "weighted",
        "quadratic",
        "ranked-choice",
    }


@pytest.mark.unit
def test_unknown_type_raises() -> None:
    proposal = _proposal("copeland", ["A", "B"], ONE_STRATEGY)

    with pytest.raises(UnsupportedVotingTypeError) as exc_info:
        get_voting_algorithm(proposal, [], proposal.strategies)

    assert exc_info.value.context["type"] == "copeland"


@pytest.mark.unit
def test_single_choice_tallies_overall_and_per_strategy() -> None:
    proposal = _proposal("single-choice", ["For", "Against"], TWO_STRATEGIES)
    votes = [_vote(1, 4, 1), _vote(2, 2, 1), _vote(1, 0, 3), _vote(3, 100, 0), _vote(True, 9, 9)]

    voting = get_voting_algorithm(proposal, votes, proposal.strategies)

    assert isinstance(voting, SingleChoiceVoting)
    assert voting.get_scores() == [8.0, 3.0]
    assert voting.get_scores_by_strategy() == [[4.0, 4.0], [2.0, 1.0]]
    assert voting.get_scores_total() == 11.0


@pytest.mark.unit
def test_basic_ignores_choices_past_abstain() -> None:
    proposal = _proposal("basic", ["For", "Against", "Abstain", "Other"], ONE_STRATEGY)
    votes = [_vote(1, 5), _vote(3, 2), _vote(4, 10)]

    voting = BasicVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == [5.0, 0.0, 2.0, 0.0]
    assert voting.get_scores_total() == 7.0


@pytest.mark.unit
def test_approval_gives_full_power_to_each_choice() -> None:
    proposal = _proposal("approval", ["A", "B", "C"], ONE_STRATEGY)
    votes = [_vote([1, 2], 3), _vote([2], 2), _vote([1, 1], 50), _vote([], 50), _vote(2, 50)]

    voting = ApprovalVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == [3.0, 5.0, 0.0]
    assert voting.get_scores_by_strategy() == [[3.0], [5.0], [0.0]]
    assert voting.get_scores_total() == 5.0


@pytest.mark.unit
def test_weighted_splits_power_proportionally() -> None:
    proposal = _proposal("weighted", ["A", "B"], ONE_STRATEGY)
    votes = [
        _vote({"1": 1, "2": 3}, 8),
        _vote({"2": 1}, 2),
        _vote({"3": 1}, 50),
        _vote({"1": 0}, 50),
        _vote({"1": -1, "2": 2}, 50),
    ]

    voting = WeightedVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == [2.0, 8.0]
    assert voting.get_scores_by_strategy() == [[2.0], [8.0]]
    assert voting.get_scores_total() == 10.0


@pytest.mark.unit
def test_quadratic_rewards_breadth_of_support() -> None:
    proposal = _proposal("quadratic", ["A", "B"], ONE_STRATEGY)
    votes = [_vote({"1": 1}, 4), _vote({"2": 1}, 1), _vote({"2": 1}, 1)]

    voting = QuadraticVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == pytest.approx([3.0, 3.0])
    assert voting.get_scores_by_strategy() == [pytest.approx([3.0]), pytest.approx([3.0])]
    assert voting.get_scores_total() == 6.0


@pytest.mark.unit
def test_quadratic_without_power_scores_zero() -> None:
    proposal = _proposal("quadratic", ["A", "B"], ONE_STRATEGY)

    voting = QuadraticVoting(proposal, [_vote({"1": 1}, 0)], proposal.strategies)

    assert voting.get_scores() == [0.0, 0.0]


@pytest.mark.unit
def test_ranked_choice_redistributes_eliminated_preferences() -> None:
    proposal = _proposal("ranked-choice", ["A", "B", "C"], ONE_STRATEGY)
    votes = [
        _vote([1, 2, 3], 4),
        _vote([2, 1, 3], 3),
        _vote([3, 2, 1], 2),
        _vote([1, 2], 50),
    ]

    voting = RankedChoiceVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == [4.0, 5.0, 0.0]
    assert voting.get_scores_by_strategy() == [[4.0], [5.0], [0.0]]
    assert voting.get_scores_total() == 9.0


@pytest.mark.unit
def test_ranked_choice_stops_on_first_round_majority() -> None:
    proposal = _proposal("ranked-choice", ["A", "B", "C"], ONE_STRATEGY)
    votes = [_vote([1, 2, 3], 6), _vote([2, 1, 3], 3), _vote([3, 2, 1], 1)]

    voting = RankedChoiceVoting(proposal, votes, proposal.strategies)

    assert voting.get_scores() == [6.0, 3.0, 1.0]


@pytest.mark.unit
@pytest.mark.parametrize("voting_type", sorted(VOTING_TYPES))
def test_no_votes_yields_zero_scores(voting_type: str) -> None:
    proposal = _proposal(voting_type, ["A", "B", "C"], TWO_STRATEGIES)

    voting = get_voting_algorithm(proposal, [], proposal.strategies)

    assert voting.get_scores() == [0.0, 0.0, 0.0]
    assert voting.get_scores_by_strategy() == [[0.0, 0.0]] * 3
    assert voting.get_scores_total() == 0.0


@pytest.mark.unit
def test_base_contract_is_abstract() -> None:
    proposal = _proposal("single-choice", ["A", "B"], ONE_STRATEGY)

    with pytest.raises(TypeError):
        VotingAlgorithm(proposal, [], proposal.strategies)  # type: ignore[abstract]
    with pytest.raises(TypeError):
        ChoiceWeightVoting(proposal, [], proposal.strategies)  # type: ignore[abstract]


@pytest.mark.unit
@pytest.mark.parametrize("voting_type", sorted(VOTING_TYPES))
def test_registered_algorithms_are_concrete(voting_type: str) -> None:
    voting_cls = VOTING_TYPES[voting_type]

    assert issubclass(voting_cls, VotingAlgorithm)
    assert not voting_cls.__abstractmethods__


@pytest.mark.unit
def test_ranked_choice_tallies_by_runoff_not_choice_weights() -> None:
    assert not issubclass(RankedChoiceVoting, ChoiceWeightVoting)
    assert not hasattr(RankedChoiceVoting, "choice_weights")
    for voting_cls in (SingleChoiceVoting, BasicVoting, ApprovalVoting, WeightedVoting):
        assert issubclass(voting_cls, ChoiceWeightVoting)
