from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from proposal_scores.models import Proposal, Vote


def is_choice_index(value: Any, choice_count: int) -> bool:
    # bools are ints in Python; a vote of `true` is never a valid index
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= choice_count


class VotingAlgorithm(ABC):
    """Aggregation contract shared by every proposal type.

    Subclasses decide which choices are valid and how valid votes are
    tallied overall and per strategy; the total is the summed balance of
    every valid vote whatever the tally.
    """

    type_name: str = ""

    def __init__(
        self,
        proposal: Proposal,
        votes: Sequence[Vote],
        strategies: Sequence[dict[str, Any]],
    ) -> None:
        self.proposal = proposal
        self.votes = votes
        self.strategies = strategies

    @property
    def choice_count(self) -> int:
        return len(self.proposal.choices)

    @abstractmethod
    def is_valid_choice(self, choice: Any) -> bool: ...

    @abstractmethod
    def get_scores(self) -> list[float]: ...

    @abstractmethod
    def get_scores_by_strategy(self) -> list[list[float]]: ...

    def get_valid_votes(self) -> list[Vote]:
        return [vote for vote in self.votes if self.is_valid_choice(vote.choice)]

    def get_scores_total(self) -> float:
        return float(sum(vote.balance for vote in self.get_valid_votes()))


class ChoiceWeightVoting(VotingAlgorithm):
    """Tally where each vote spreads its power over choices by fixed fractions."""

    @abstractmethod
    def choice_weights(self, choice: Any) -> list[float]:
        """Fraction of a vote's power attributed to each choice, in choice order."""

    def get_scores(self) -> list[float]:
        totals = [0.0] * self.choice_count
        for vote in self.get_valid_votes():
            for index, weight in enumerate(self.choice_weights(vote.choice)):
                totals[index] += vote.balance * weight
        return totals

    def get_scores_by_strategy(self) -> list[list[float]]:
        strategy_count = len(self.strategies)
        totals = [[0.0] * strategy_count for _ in range(self.choice_count)]
        for vote in self.get_valid_votes():
            weights = self.choice_weights(vote.choice)
            for index, weight in enumerate(weights):
                if not weight:
                    continue
                for s_index in range(strategy_count):
                    totals[index][s_index] += strategy_power(vote, s_index) * weight
        return totals


def strategy_power(vote: Vote, index: int) -> float:
    if index < len(vote.scores):
        return float(vote.scores[index] or 0)
    return 0.0
