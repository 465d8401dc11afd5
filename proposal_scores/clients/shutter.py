"""Trigger decryption-key retrieval for shutter-encrypted proposals."""

from __future__ import annotations

import itertools

import httpx
import structlog

from proposal_scores.config.settings import ScoresSettings
from proposal_scores.infra.errors import DecryptionServiceError
from proposal_scores.infra.retry import simple_retry

LOGGER = structlog.get_logger(__name__)

_request_ids = itertools.count(1)


class ShutterClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: ScoresSettings) -> "ShutterClient":
        return cls(base_url=settings.shutter_url)

    async def get_decryption_key(self, proposal_id: str) -> None:
        """Ask the keyper set to release the key; the response is not consumed."""
        try:
            await self._request_key(proposal_id)
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "shutter.decryption_key.failed", proposal_id=proposal_id, error=str(exc)
            )
            raise DecryptionServiceError(
                f"Decryption key request failed: {exc}",
                context={"proposal_id": proposal_id},
                cause=exc,
            ) from exc
        LOGGER.info("shutter.decryption_key.requested", proposal_id=proposal_id)

    @simple_retry(max_attempts=3, wait_seconds=1.0, retry_on=httpx.TransportError)
    async def _request_key(self, proposal_id: str) -> None:
        payload = {
            "jsonrpc": "2.0",
            "method": "shutter_getDecryptionKey",
            "params": ["1", proposal_id],
            "id": next(_request_ids),
        }
        if self._client is not None:
            response = await self._client.post(self._url, json=payload, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload)
        response.raise_for_status()
