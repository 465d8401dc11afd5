from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from proposal_scores.models import Vote
from proposal_scores.voting.base import ChoiceWeightVoting, strategy_power


def _weight_items(choice: Mapping[Any, Any]) -> list[tuple[int, float]]:
    return [(int(key), float(value)) for key, value in choice.items()]


class WeightedVoting(ChoiceWeightVoting):
    """Power is split across choices proportionally to the voter's weights.

    ``choice`` is a mapping of 1-based choice index (string or int) to a
    non-negative weight.
    """

    type_name = "weighted"

    def is_valid_choice(self, choice: Any) -> bool:
        if not isinstance(choice, Mapping) or not choice:
            return False
        try:
            items = _weight_items(choice)
        except (TypeError, ValueError):
            return False
        if any(not 1 <= index <= self.choice_count for index, _ in items):
            return False
        if any(weight < 0 or math.isnan(weight) for _, weight in items):
            return False
        return sum(weight for _, weight in items) > 0

    def choice_weights(self, choice: Any) -> list[float]:
        items = _weight_items(choice)
        total = sum(weight for _, weight in items)
        weights = [0.0] * self.choice_count
        for index, weight in items:
            weights[index - 1] += weight / total
        return weights


class QuadraticVoting(WeightedVoting):
    """Quadratic funding style tally, rescaled so the scores sum to total power."""

    type_name = "quadratic"

    def _quadratic(self, votes: Sequence[Vote], power_of: Any) -> list[float]:
        roots = [0.0] * self.choice_count
        total_power = 0.0
        for vote in votes:
            power = float(power_of(vote))
            total_power += power
            for index, share in enumerate(self.choice_weights(vote.choice)):
                if share and power > 0:
                    roots[index] += math.sqrt(share * power)
        squares = [root * root for root in roots]
        squares_total = sum(squares)
        if not squares_total:
            return [0.0] * self.choice_count
        return [total_power * square / squares_total for square in squares]

    def get_scores(self) -> list[float]:
        return self._quadratic(self.get_valid_votes(), lambda vote: vote.balance)

    def get_scores_by_strategy(self) -> list[list[float]]:
        valid = self.get_valid_votes()
        per_strategy = [
            self._quadratic(valid, lambda vote, s=s_index: strategy_power(vote, s))
            for s_index in range(len(self.strategies))
        ]
        return [
            [per_strategy[s_index][index] for s_index in range(len(self.strategies))]
            for index in range(self.choice_count)
        ]
