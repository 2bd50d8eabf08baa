"""
Get / Put / Delete operations of the cache gateway.
"""

from typing import Awaitable, Callable, Optional, TYPE_CHECKING

from fastapi import Response

from shared.errors import (
    EmptyBodyError,
    EntryNotFoundError,
    MethodNotAllowedError,
    StorageError,
    UpstreamUnavailableError,
)
from shared.logging import get_logger
from shared.responses import image_response, send_response

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.upstream_client import UpstreamClient
    from ..caching.cache_store import LocalCacheStore
    from shared.metrics import MetricsCollector


BodyReader = Callable[[], Awaitable[bytes]]


class CacheOperations:
    """Read-through cache operations over a local store and an upstream."""

    def __init__(
        self,
        store: "LocalCacheStore",
        upstream: "UpstreamClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.upstream = upstream
        self.metrics = metrics
        self.logger = get_logger("gateway.operations")

    async def dispatch(self, method: str, key: str, read_body: BodyReader) -> Response:
        """Route a request for a valid key to its operation."""
        method = method.upper()
        if method == "GET":
            return await self.get(key)
        if method == "PUT":
            try:
                body = await read_body()
            except Exception as exc:
                raise StorageError(details={"key": key, "error": str(exc)}) from exc
            return await self.put(key, body)
        if method == "DELETE":
            return await self.delete(key)
        raise MethodNotAllowedError(details={"method": method})

    async def get(self, key: str) -> Response:
        """Serve from cache, falling back to upstream on a miss."""
        cached = await self.store.read(key)
        if cached is not None:
            self._count("cache_lookups_total", result="hit")
            self.logger.debug("Cache hit", key=key)
            return image_response(cached)

        self._count("cache_lookups_total", result="miss")
        self.logger.debug("Cache miss, fetching upstream", key=key)

        result = await self.upstream.fetch(key)
        self._count("upstream_fetches_total", outcome=result.outcome.value)
        if not result.ok:
            raise UpstreamUnavailableError(details={
                "key": key,
                "outcome": result.outcome.value,
                "status_code": result.status_code,
                "error": result.error,
            })

        try:
            await self.store.write(key, result.body)
        except StorageError as exc:
            # The fetched image is still served; the entry stays absent.
            self.logger.error("Failed to persist upstream resource", key=key, details=exc.details)
        else:
            self._count("cache_writes_total", source="upstream")

        return image_response(result.body)

    async def put(self, key: str, body: bytes) -> Response:
        """Unconditionally replace the entry for ``key``."""
        if not body:
            raise EmptyBodyError(details={"key": key})

        await self.store.write(key, body)
        self._count("cache_writes_total", source="client")
        self.logger.info("Cache entry stored", key=key, size=len(body))
        return send_response(201, body="Created")

    async def delete(self, key: str) -> Response:
        """Remove the entry for ``key``."""
        try:
            await self.store.delete(key)
        except EntryNotFoundError:
            self._count("cache_deletes_total", result="not_found")
            raise
        except StorageError:
            self._count("cache_deletes_total", result="error")
            raise

        self._count("cache_deletes_total", result="deleted")
        self.logger.info("Cache entry deleted", key=key)
        return send_response(200, body="OK")

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
