import asyncio
import logging
from typing import Optional

import httpx

from redflag.sources.pool_pipeline.config.settings import (
    ETHOS_API_URL,
    ETHOS_CLIENT_NAME,
    REPUTATION_TIMEOUT_SECONDS,
)
from redflag.utils.constants import ZERO_ADDRESS
from redflag.utils.types import ReputationResult

log = logging.getLogger(__name__)


class ReputationLookupError(Exception):
    pass


class EthosClient:
    """
    Client for the Ethos score endpoint.

    `lookup` never raises. A 2xx with `score: null` is a successful lookup of
    an account with no history; timeouts, non-2xx answers and network errors
    come back as `ReputationResult(error=...)` instead.
    """

    def __init__(
        self,
        base_url: str = ETHOS_API_URL,
        client_name: str = ETHOS_CLIENT_NAME,
        timeout: float = REPUTATION_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_name = client_name
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _client(self) -> httpx.AsyncClient:
        # one connection pool for every lookup this client makes
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"X-Ethos-Client": self.client_name},
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def fetch_score(self, address: str) -> Optional[int]:
        try:
            resp = await self._client().get(f"{self.base_url}/score/address", params={"address": address})
        except httpx.HTTPError as exc:
            raise ReputationLookupError(f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise ReputationLookupError(f"HTTP {resp.status_code}")
        try:
            score = resp.json().get("score")
        except (ValueError, AttributeError) as exc:
            raise ReputationLookupError(f"Malformed response: {exc}") from exc

        if score is None:
            return None
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ReputationLookupError(f"Unexpected score value: {score!r}")
        return int(score)

    async def lookup(self, address: str) -> ReputationResult:
        if not address or address.lower() == ZERO_ADDRESS:
            return ReputationResult(error="creator unresolved")
        try:
            # httpx timeouts are per-phase; wait_for bounds the whole call
            score = await asyncio.wait_for(self.fetch_score(address), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning(f"ethos.timeout addr={address} after={self.timeout}s")
            return ReputationResult(error=f"Reputation lookup timed out after {self.timeout:g}s")
        except ReputationLookupError as exc:
            log.warning(f"ethos.failed addr={address} err={exc}")
            return ReputationResult(error=str(exc))
        return ReputationResult(score=score)
