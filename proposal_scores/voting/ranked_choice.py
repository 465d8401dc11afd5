from __future__ import annotations

from typing import Any

from proposal_scores.voting.base import VotingAlgorithm, is_choice_index, strategy_power


class RankedChoiceVoting(VotingAlgorithm):
    """Instant-runoff: eliminate the weakest choice until one holds a majority.

    Runoff stops once the leader holds more than half of the total power or
    fewer than three choices remain. Scores are the final-round tallies.
    """

    type_name = "ranked-choice"

    def is_valid_choice(self, choice: Any) -> bool:
        if not isinstance(choice, list) or len(choice) != self.choice_count:
            return False
        if not all(is_choice_index(item, self.choice_count) for item in choice):
            return False
        return len(set(choice)) == self.choice_count

    def _final_round(self) -> dict[int, tuple[float, list[float]]]:
        strategy_count = len(self.strategies)
        ballots = [
            (
                list(vote.choice),
                vote.balance,
                [strategy_power(vote, s) for s in range(strategy_count)],
            )
            for vote in self.get_valid_votes()
        ]
        total_power = sum(balance for _, balance, _ in ballots)

        while True:
            tally: dict[int, tuple[float, list[float]]] = {}
            for ranking, balance, scores in ballots:
                first = ranking[0]
                power, by_strategy = tally.get(first, (0.0, [0.0] * strategy_count))
                tally[first] = (
                    power + balance,
                    [acc + value for acc, value in zip(by_strategy, scores)],
                )
            if not tally:
                return tally
            top = max(power for power, _ in tally.values())
            if top > total_power / 2 or len(tally) < 3:
                return tally
            # First candidate (in first-preference order) with the lowest power.
            eliminated = min(tally, key=lambda candidate: tally[candidate][0])
            ballots = [
                ([c for c in ranking if c != eliminated], balance, scores)
                for ranking, balance, scores in ballots
            ]
            ballots = [ballot for ballot in ballots if ballot[0]]

    def get_scores(self) -> list[float]:
        final = self._final_round()
        return [final.get(index + 1, (0.0, []))[0] for index in range(self.choice_count)]

    def get_scores_by_strategy(self) -> list[list[float]]:
        final = self._final_round()
        empty = [0.0] * len(self.strategies)
        return [list(final.get(index + 1, (0.0, empty))[1]) for index in range(self.choice_count)]
