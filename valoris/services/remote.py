from __future__ import annotations

import logging
from typing import Any

import httpx

from valoris.config.loader import AnalysisServiceConfig
from valoris.errors import ApiError, NetworkError, truncate_body

from .shape_adapters import decode_body

"""HTTP client for the two remote analysis stages.

Both stages are JSON POSTs authenticated with a static ``API-KEY`` header.
Failures are reported through the error taxonomy only: a non-2xx answer is
an ApiError, a transport failure or timeout is a NetworkError and a body
that is not JSON is a ParsingError. No raw httpx exception leaves this
module.
"""

__all__ = [
    "NORMALIZE_STAGE",
    "ENRICH_STAGE",
    "AnalysisServiceClient",
]

NORMALIZE_STAGE = "normalize"
ENRICH_STAGE = "enrich"

logger = logging.getLogger(__name__)


class AnalysisServiceClient:
    """Calls the normalization and enrichment endpoints.

    An ``httpx.AsyncClient`` can be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise a short-lived client is opened per
    request.
    """

    def __init__(self, config: AnalysisServiceConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._http = http_client
        self._timeout = httpx.Timeout(config.timeout_seconds)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["API-KEY"] = self.config.api_key
        return headers

    async def _send(self, client: httpx.AsyncClient, url: str, payload: dict[str, Any]) -> httpx.Response:
        return await client.post(url, json=payload, headers=self._headers(), timeout=self._timeout)

    async def _post(self, stage: str, url: str, payload: dict[str, Any]) -> Any:
        logger.debug("POST stage=%s url=%s", stage, url)
        try:
            if self._http is not None:
                response = await self._send(self._http, url, payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._send(client, url, payload)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"{stage} stage timed out after {self.config.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{stage} stage request failed: {e}") from e

        if not response.is_success:
            body = response.text
            raise ApiError(
                f"{stage} stage returned HTTP {response.status_code}: {truncate_body(body, 200)}",
                status_code=response.status_code,
                body=body,
            )
        return decode_body(response.text)

    async def normalize(self, payload: dict[str, Any]) -> Any:
        """Stage 1: submit the prepared payload, get the normalized vendor list back."""
        return await self._post(NORMALIZE_STAGE, self.config.normalize_url, payload)

    async def enrich(self, normalized: Any) -> Any:
        """Stage 2: submit the stage 1 output, get the optimization analysis back."""
        payload = {"schemaVersion": self.config.schema_version, "data": normalized}
        return await self._post(ENRICH_STAGE, self.config.enrich_url, payload)
