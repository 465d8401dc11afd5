from __future__ import annotations

from typing import Any

from proposal_scores.voting.base import ChoiceWeightVoting, is_choice_index


class SingleChoiceVoting(ChoiceWeightVoting):
    type_name = "single-choice"

    def is_valid_choice(self, choice: Any) -> bool:
        return is_choice_index(choice, self.choice_count)

    def choice_weights(self, choice: Any) -> list[float]:
        weights = [0.0] * self.choice_count
        weights[choice - 1] = 1.0
        return weights


class BasicVoting(SingleChoiceVoting):
    """For / Against / Abstain; choices beyond the third are never valid."""

    type_name = "basic"

    def is_valid_choice(self, choice: Any) -> bool:
        return is_choice_index(choice, min(self.choice_count, 3))


class ApprovalVoting(ChoiceWeightVoting):
    """Every approved choice receives the vote's full power."""

    type_name = "approval"

    def is_valid_choice(self, choice: Any) -> bool:
        if not isinstance(choice, list) or not choice:
            return False
        if len(set(choice)) != len(choice):
            return False
        return all(is_choice_index(item, self.choice_count) for item in choice)

    def choice_weights(self, choice: Any) -> list[float]:
        weights = [0.0] * self.choice_count
        for item in choice:
            weights[item - 1] = 1.0
        return weights
