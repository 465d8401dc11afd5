"""Unit tests for VoteGateway."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import asyncpg
import pytest

from proposal_scores.db.gateway.votes import VoteGateway
from proposal_scores.infra.errors import DatabaseError
from proposal_scores.models import Vote
from tests.fixtures.scores_fixtures import make_vote_row


@pytest.mark.unit
class TestVoteGateway:
    @pytest.fixture
    def mock_connection(self) -> AsyncMock:
        return AsyncMock(spec=asyncpg.Connection)

    @pytest.fixture
    def gateway(self) -> VoteGateway:
        return VoteGateway()

    @pytest.mark.asyncio
    async def test_fetch_votes_aliases_working_power(
        self, gateway: VoteGateway, mock_connection: AsyncMock
    ) -> None:
        mock_connection.fetch.return_value = [
            make_vote_row("v1", "0xa", vp=12.5, vp_by_strategy="[10,2.5]", vp_state="final"),
            make_vote_row("v2", "0xb", choice="[1,2]"),
        ]

        votes = await gateway.fetch_votes(mock_connection, proposal_id="0xproposal")

        assert [vote.id for vote in votes] == ["v1", "v2"]
        first, second = votes
        assert first.vp == 12.5
        assert first.vp_by_strategy == [10.0, 2.5]
        assert first.balance == first.vp
        assert first.scores == first.vp_by_strategy
        # the working copy must not alias the persisted list
        assert first.scores is not first.vp_by_strategy
        assert first.choice == 1
        assert second.choice == [1, 2]
        assert second.vp_state == "pending"
        assert [vote.proposal for vote in votes] == ["0xproposal", "0xproposal"]
        sql = mock_connection.fetch.await_args.args[0]
        assert "SELECT id, proposal, choice" in sql

    @pytest.mark.asyncio
    async def test_update_batch_uses_one_statement_per_vote(
        self, gateway: VoteGateway, mock_connection: AsyncMock
    ) -> None:
        votes = [
            Vote(
                id="v1",
                voter="0xa",
                choice=1,
                vp=0,
                vp_by_strategy=[],
                vp_state="pending",
                balance=10.0,
                scores=[10.0],
            ),
            Vote(
                id="v2",
                voter="0xb",
                choice=2,
                vp=0,
                vp_by_strategy=[],
                vp_state="pending",
                balance=5.0,
                scores=[5.0],
            ),
        ]

        await gateway.update_votes_vp_batch(
            mock_connection, proposal_id="0xproposal", votes=votes, vp_state="final"
        )

        mock_connection.transaction.assert_called_once()
        mock_connection.executemany.assert_awaited_once()
        sql, params = mock_connection.executemany.await_args.args
        assert "WHERE id = $4 AND proposal = $5" in sql
        assert params == [
            (10.0, json.dumps([10.0], separators=(",", ":")), "final", "v1", "0xproposal"),
            (5.0, json.dumps([5.0], separators=(",", ":")), "final", "v2", "0xproposal"),
        ]

    @pytest.mark.asyncio
    async def test_update_batch_empty_is_noop(
        self, gateway: VoteGateway, mock_connection: AsyncMock
    ) -> None:
        await gateway.update_votes_vp_batch(
            mock_connection, proposal_id="0xproposal", votes=[], vp_state="final"
        )

        mock_connection.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_batch_failure_is_mapped(
        self, gateway: VoteGateway, mock_connection: AsyncMock
    ) -> None:
        pg_error = asyncpg.PostgresError("deadlock")
        pg_error.sqlstate = "40P01"
        mock_connection.executemany.side_effect = pg_error
        vote = Vote(id="v1", voter="0xa", choice=1, vp=0, vp_by_strategy=[], vp_state="pending")

        with pytest.raises(DatabaseError) as exc_info:
            await gateway.update_votes_vp_batch(
                mock_connection, proposal_id="0xproposal", votes=[vote], vp_state="final"
            )

        assert exc_info.value.context["retry_possible"] is True
        assert exc_info.value.context["batch_size"] == 1
