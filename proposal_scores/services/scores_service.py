"""Recompute and persist the scores of a proposal from its votes.

A run reads the proposal, decides whether it is eligible, waits out the
post-end grace window, fetches the votes, asks the score API for voting
power (unless every vote is already final), aggregates with the
algorithm for the proposal type and writes votes and aggregate back.

Skipped runs return ``False`` rather than raising. Store and score API
failures propagate to the caller after the pending guard is released;
retrying is the caller's job.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Iterable, Sequence, cast

import structlog

from proposal_scores.clients.score_api import ScoreApiClient
from proposal_scores.clients.shutter import ShutterClient
from proposal_scores.config.settings import ScoresSettings, get_settings
from proposal_scores.constants import (
    HOT_PROPOSAL_REFRESH_SECONDS,
    HOT_PROPOSAL_VOTES_THRESHOLD,
    PRIVACY_SHUTTER,
    PROPOSAL_STATE_PENDING,
    SCORES_STATE_FINAL,
    SCORES_STATE_PENDING,
)
from proposal_scores.db.gateway.proposals import ProposalGateway
from proposal_scores.db.gateway.votes import VoteGateway
from proposal_scores.db.pool import get_pool
from proposal_scores.infra.types.db import PoolProtocol
from proposal_scores.models import Proposal, ScoresResult, Vote
from proposal_scores.services.finalization import Sleeper, wait_for_finalization
from proposal_scores.services.pending_guard import PENDING_REQUESTS, PendingRequestGuard
from proposal_scores.services.vote_power_updater import VotePowerUpdater
from proposal_scores.voting import get_voting_algorithm, has_strategy_override

LOGGER = structlog.get_logger(__name__)


def apply_vote_scores(votes: Iterable[Vote], scores: Sequence[dict[str, float]]) -> None:
    """Set each vote's working power from per-strategy ``{voter: power}`` maps.

    A voter missing from a strategy's map contributes 0 for that strategy.
    """
    for vote in votes:
        vote.scores = [float(by_voter.get(vote.voter, 0) or 0) for by_voter in scores]
        vote.balance = float(sum(vote.scores))


class ScoresService:
    def __init__(
        self,
        *,
        pool: PoolProtocol | None = None,
        proposal_gateway: ProposalGateway | None = None,
        vote_gateway: VoteGateway | None = None,
        score_api: ScoreApiClient | None = None,
        shutter: ShutterClient | None = None,
        guard: PendingRequestGuard | None = None,
        vote_updater: VotePowerUpdater | None = None,
        settings: ScoresSettings | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._pool = pool
        self._proposals = proposal_gateway or ProposalGateway()
        self._votes = vote_gateway or VoteGateway()
        self._settings = settings
        self._score_api = score_api
        self._shutter = shutter
        self._guard = guard if guard is not None else PENDING_REQUESTS
        self._vote_updater = vote_updater
        self._clock = clock
        self._sleep = sleep

    # --- collaborators, resolved lazily so tests can inject only what they use ---
    def _get_pool(self) -> PoolProtocol:
        if self._pool is None:
            self._pool = cast(PoolProtocol, get_pool())
        return self._pool

    def _get_settings(self) -> ScoresSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def _get_score_api(self) -> ScoreApiClient:
        if self._score_api is None:
            self._score_api = ScoreApiClient.from_settings(self._get_settings())
        return self._score_api

    def _get_shutter(self) -> ShutterClient:
        if self._shutter is None:
            self._shutter = ShutterClient.from_settings(self._get_settings())
        return self._shutter

    def _get_vote_updater(self) -> VotePowerUpdater:
        if self._vote_updater is None:
            self._vote_updater = VotePowerUpdater(
                self._get_pool(), gateway=self._votes, sleep=self._sleep
            )
        return self._vote_updater

    def _now(self) -> int:
        return int(self._clock())

    # --- orchestration ---
    async def update_proposal_and_votes(self, proposal_id: str, *, force: bool = False) -> bool:
        """Recompute a proposal's scores; True when up to date or handled."""
        now = self._now()
        async with self._get_pool().acquire() as conn:
            proposal = await self._proposals.fetch_proposal(
                conn, proposal_id=proposal_id, now=now
            )

        if proposal is None or proposal.state == PROPOSAL_STATE_PENDING:
            LOGGER.debug(
                "scores.update.skipped",
                proposal_id=proposal_id,
                reason="missing" if proposal is None else "not_started",
            )
            return False
        if proposal.is_final:
            return True

        if not force and proposal.privacy == PRIVACY_SHUTTER and proposal.is_closed:
            await self._get_shutter().get_decryption_key(proposal.id)
            return True

        await wait_for_finalization(
            proposal_id=proposal.id, end=proposal.end, now=now, sleep=self._sleep
        )

        hot = proposal.votes > HOT_PROPOSAL_VOTES_THRESHOLD
        if hot and proposal.scores_updated > now - HOT_PROPOSAL_REFRESH_SECONDS:
            self._log_skip(proposal, "throttled")
            return False
        if self._guard.is_pending(proposal.id):
            self._log_skip(proposal, "in_flight")
            return False

        # No await between the check above and acquiring, so no other run can interleave.
        acquired = hot and self._guard.try_acquire(proposal.id)
        try:
            await self._recompute(proposal)
        finally:
            if acquired:
                self._guard.release(proposal.id)
        return True

    async def update_many(
        self, proposal_ids: Sequence[str], *, force: bool = False
    ) -> dict[str, bool | BaseException]:
        """Run several recomputations concurrently; failures are returned, not raised."""
        unique_ids = list(dict.fromkeys(proposal_ids))
        outcomes = await asyncio.gather(
            *(self.update_proposal_and_votes(pid, force=force) for pid in unique_ids),
            return_exceptions=True,
        )
        return dict(zip(unique_ids, outcomes))

    async def _recompute(self, proposal: Proposal) -> ScoresResult:
        async with self._get_pool().acquire() as conn:
            votes = await self._votes.fetch_votes(conn, proposal_id=proposal.id)

        is_final = all(vote.vp_state == SCORES_STATE_FINAL for vote in votes)
        vp_state = SCORES_STATE_FINAL

        if not is_final:
            LOGGER.info("scores.proposal.fetching_scores", proposal_id=proposal.id)
            api_result = await self._get_score_api().get_scores(
                space=proposal.space,
                strategies=proposal.strategies,
                network=proposal.network,
                addresses=list(dict.fromkeys(vote.voter for vote in votes)),
                snapshot=proposal.snapshot,
            )
            vp_state = api_result.state
            apply_vote_scores(votes, api_result.scores)

        voting = get_voting_algorithm(proposal, votes, proposal.strategies)
        result = ScoresResult(
            scores_state=SCORES_STATE_FINAL if proposal.is_closed else SCORES_STATE_PENDING,
            scores=voting.get_scores(),
            scores_by_strategy=voting.get_scores_by_strategy(),
            scores_total=voting.get_scores_total(),
        )

        # Delegations can still be overridden while voting is open.
        if (
            vp_state == SCORES_STATE_FINAL
            and not proposal.is_closed
            and has_strategy_override(proposal.strategies)
        ):
            vp_state = SCORES_STATE_PENDING

        if not is_final:
            await self._get_vote_updater().update_votes_vp(votes, vp_state, proposal.id)

        async with self._get_pool().acquire() as conn:
            await self._proposals.update_proposal_scores(
                conn,
                proposal_id=proposal.id,
                result=result,
                votes=len(votes),
                now=self._now(),
            )

        LOGGER.info(
            "scores.proposal.updated",
            proposal_id=proposal.id,
            space=proposal.space,
            scores_state=result.scores_state,
            votes=len(votes),
            vp_state=vp_state,
        )
        return result

    def _log_skip(self, proposal: Proposal, reason: str) -> None:
        LOGGER.info(
            "scores.update.skipped",
            proposal_id=proposal.id,
            space=proposal.space,
            reason=reason,
            votes=proposal.votes,
            scores_updated=proposal.scores_updated,
        )
