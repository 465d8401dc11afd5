"""HTTP client for the score API that evaluates voting strategies."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import httpx
import structlog

from proposal_scores.config.settings import ScoresSettings
from proposal_scores.constants import SCORES_STATE_FINAL, SCORES_STATE_PENDING
from proposal_scores.infra.errors import ScoringServiceError
from proposal_scores.models import ScoreApiResult

LOGGER = structlog.get_logger(__name__)


def _parse_scores(raw: Any, strategy_count: int) -> list[dict[str, float]]:
    if not isinstance(raw, list):
        raise ScoringServiceError(
            "Score API returned malformed scores", context={"scores_type": type(raw).__name__}
        )
    scores: list[dict[str, float]] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise ScoringServiceError("Score API returned a non-object strategy result")
        try:
            scores.append({str(voter): float(power or 0) for voter, power in entry.items()})
        except (TypeError, ValueError) as exc:
            raise ScoringServiceError(
                "Score API returned a non-numeric voting power", cause=exc
            ) from exc
    if len(scores) != strategy_count:
        raise ScoringServiceError(
            "Score API returned a different number of strategy results than requested",
            context={"expected": strategy_count, "received": len(scores)},
        )
    return scores


class ScoreApiClient:
    """Request per-strategy voting power for a set of voters at a snapshot."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 600.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/api/scores"
        self._headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            self._headers["x-api-key"] = api_key
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: ScoresSettings) -> "ScoreApiClient":
        return cls(
            base_url=settings.score_api_url,
            api_key=settings.score_api_key,
            timeout=settings.score_api_timeout_seconds,
        )

    async def get_scores(
        self,
        *,
        space: str,
        strategies: Sequence[Mapping[str, Any]],
        network: str,
        addresses: Sequence[str],
        snapshot: int | str = "latest",
    ) -> ScoreApiResult:
        payload = {
            "params": {
                "space": space,
                "network": network,
                "snapshot": snapshot,
                "strategies": list(strategies),
                "addresses": list(addresses),
            }
        }
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._url, json=payload, headers=self._headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ScoringServiceError(
                f"Score API request failed: {exc}",
                context={"space": space, "url": self._url},
                cause=exc,
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ScoringServiceError(
                "Score API returned a non-JSON body",
                context={"status_code": response.status_code},
                cause=exc,
            ) from exc

        if not isinstance(body, Mapping) or body.get("error") or response.is_error:
            error = body.get("error") if isinstance(body, Mapping) else None
            raise ScoringServiceError(
                f"Score API error: {error or response.status_code}",
                context={"space": space, "status_code": response.status_code, "error": error},
            )

        result = body.get("result") or {}
        if not isinstance(result, Mapping):
            raise ScoringServiceError(
                "Score API returned a malformed result",
                context={"space": space, "result_type": type(result).__name__},
            )
        state = str(result.get("state") or SCORES_STATE_PENDING)
        if state not in (SCORES_STATE_PENDING, SCORES_STATE_FINAL):
            state = SCORES_STATE_PENDING
        scores = _parse_scores(result.get("scores"), len(strategies))
        LOGGER.debug(
            "score_api.scores.received",
            space=space,
            addresses=len(addresses),
            strategies=len(strategies),
            state=state,
        )
        return ScoreApiResult(scores=scores, state=state)
