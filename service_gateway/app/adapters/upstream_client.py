"""
Upstream image service client for Gateway.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from shared.logging import get_logger


class FetchOutcome(str, Enum):
    """How an upstream fetch ended."""

    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching one resource from upstream."""

    outcome: FetchOutcome
    body: bytes = b""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.HIT


class UpstreamClient:
    """Client for the upstream image service (``<base_url>/<key>``).

    Never raises: transport errors, non-success statuses and empty bodies
    are all reported through :class:`FetchResult`. No retries.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("gateway.upstream_client")

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def fetch(self, key: str) -> FetchResult:
        """Fetch the resource for ``key``."""
        url = self.url_for(key)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("Upstream request failed", url=url, error=str(exc))
            return FetchResult(FetchOutcome.ERROR, error=str(exc))
        except Exception as exc:
            self.logger.error("Unexpected upstream error", url=url, error=str(exc), exc_info=True)
            return FetchResult(FetchOutcome.ERROR, error=str(exc))

        if not response.is_success:
            self.logger.info("Upstream returned non-success status", url=url, status_code=response.status_code)
            return FetchResult(FetchOutcome.MISS, status_code=response.status_code)

        body = response.content
        if not body:
            self.logger.info("Upstream returned empty body", url=url, status_code=response.status_code)
            return FetchResult(FetchOutcome.MISS, status_code=response.status_code)

        self.logger.debug("Upstream resource retrieved", url=url, size=len(body))
        return FetchResult(FetchOutcome.HIT, body=body, status_code=response.status_code)
