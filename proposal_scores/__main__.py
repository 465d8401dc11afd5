"""Recompute scores for one or more proposals from the command line.

Usage: ``python -m proposal_scores <proposal-id> [<proposal-id> ...] [--force]``
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

import structlog
from dotenv import load_dotenv

from proposal_scores.config.settings import get_settings
from proposal_scores.db.pool import close_pool, init_pool
from proposal_scores.infra.errors import Error
from proposal_scores.infra.logging.config import configure_logging
from proposal_scores.services.scores_service import ScoresService

LOGGER = structlog.get_logger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="proposal_scores", description=__doc__)
    parser.add_argument("proposal_ids", nargs="+", help="Proposal ids to recompute")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Compute even when a closed shutter proposal would defer to key retrieval",
    )
    return parser.parse_args(argv)


async def _run(proposal_ids: Sequence[str], *, force: bool) -> int:
    pool = await init_pool()
    try:
        service = ScoresService(pool=pool)
        outcomes = await service.update_many(proposal_ids, force=force)
    finally:
        await close_pool()

    exit_code = 0
    for proposal_id, outcome in outcomes.items():
        if isinstance(outcome, BaseException):
            exit_code = 1
            context = outcome.log_safe_context() if isinstance(outcome, Error) else {}
            LOGGER.error(
                "scores.cli.failed",
                proposal_id=proposal_id,
                error=str(outcome),
                error_type=type(outcome).__name__,
                context=context,
            )
        else:
            LOGGER.info("scores.cli.done", proposal_id=proposal_id, updated=outcome)
    return exit_code


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv(override=False)
    args = _parse_args(argv)
    configure_logging(get_settings().log_level)
    return asyncio.run(_run(args.proposal_ids, force=args.force))


if __name__ == "__main__":
    sys.exit(main())
