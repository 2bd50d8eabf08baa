"""
Image Cache Gateway service.
"""

import argparse
import sys
from typing import List, Optional, Sequence

import httpx
from fastapi import FastAPI, Request
from prometheus_client import CollectorRegistry
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.base_service import BaseService
from shared.config import GatewayConfig, get_config
from shared.errors import InvalidResourceKeyError, MethodNotAllowedError
from shared.responses import send_response
from service_gateway.app.adapters.upstream_client import UpstreamClient
from service_gateway.app.caching.cache_store import LocalCacheStore
from service_gateway.app.domain.operations import CacheOperations
from service_gateway.app.domain.resource_key import parse_resource_key


SERVICE_NAME = "gateway"

# Other methods never reach the route; routing_error_handler answers them.
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def raw_request_path(request: Request) -> str:
    """Request path exactly as sent, before percent-decoding."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.url.path


class CacheGatewayService(BaseService):
    """Read-through image cache in front of the upstream service."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
        registry: Optional[CollectorRegistry] = None,
    ):
        super().__init__(SERVICE_NAME, config, registry=registry)
        self.store = LocalCacheStore(self.config.cache_dir)
        self.store.ensure_directory()
        self.upstream = UpstreamClient(
            self.config.upstream_url,
            timeout=self.config.upstream_timeout,
            transport=upstream_transport,
        )
        self.operations = CacheOperations(self.store, self.upstream, metrics=self.metrics)

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _setup_gateway_routes(self):
        """Register the catch-all resource route."""

        @self.app.api_route("/{path:path}", methods=ROUTED_METHODS)
        async def resource_route(request: Request, path: str):
            target = raw_request_path(request)
            key = parse_resource_key(target)
            if key is None:
                raise InvalidResourceKeyError(details={"path": target})
            return await self.operations.dispatch(request.method, key, request.body)

        # Methods outside ROUTED_METHODS are rejected by route matching
        # before resource_route runs; the key still decides 404 vs 405.
        @self.app.exception_handler(StarletteHTTPException)
        async def routing_error_handler(request: Request, exc: StarletteHTTPException):
            target = raw_request_path(request)
            if parse_resource_key(target) is None:
                return self.error_response(InvalidResourceKeyError(details={"path": target}))
            if exc.status_code == 405:
                return self.error_response(MethodNotAllowedError(details={"method": request.method}))
            return send_response(exc.status_code, body=str(exc.detail))

    def run(self):
        """Start the optional metrics exporter, then serve requests."""
        if self.config.metrics_port is not None:
            self.metrics.start_metrics_server(self.config.metrics_port, addr=self.config.host)
            self.logger.info("Metrics exporter started", port=self.config.metrics_port)

        self.logger.info(
            "Server listening",
            url=f"http://{self.config.host}:{self.config.port}",
            cache=str(self.config.cache_dir),
            upstream=self.config.upstream_url,
        )
        super().run()


def create_app(
    config: GatewayConfig,
    *,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
    registry: Optional[CollectorRegistry] = None,
) -> FastAPI:
    """Create the gateway FastAPI application."""
    service = CacheGatewayService(config, upstream_transport=upstream_transport, registry=registry)
    return service.app


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    # -h is the listen host, so help moves to --help only.
    parser = argparse.ArgumentParser(
        prog="cache-gateway",
        description="Caching gateway in front of an upstream image service.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this message and exit")
    parser.add_argument("-h", "--host", required=True, help="Host to listen on")
    parser.add_argument("-p", "--port", required=True, type=int, help="Port to listen on")
    parser.add_argument("-c", "--cache", required=True, help="Path to cache directory")
    parser.add_argument("--upstream-url", default=None, help="Upstream image service base URL")
    parser.add_argument("--upstream-timeout", type=float, default=None, help="Upstream request timeout in seconds")
    parser.add_argument("--log-level", default=None, help="Log level (debug, info, warning, error)")
    parser.add_argument("--metrics-port", type=int, default=None, help="Serve Prometheus metrics on this port")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GatewayConfig:
    """Merge CLI arguments over environment configuration."""
    overrides = {
        "host": args.host,
        "port": args.port,
        "cache_dir": args.cache,
        "upstream_url": args.upstream_url,
        "upstream_timeout": args.upstream_timeout,
        "log_level": args.log_level,
        "metrics_port": args.metrics_port,
    }
    return get_config(**{name: value for name, value in overrides.items() if value is not None})


def _format_validation_error(exc: ValidationError) -> str:
    problems: List[str] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{field}: {error.get('msg')}")
    return "invalid configuration: " + "; ".join(problems)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        config = build_config(args)
    except ValidationError as exc:
        print(f"cache-gateway: {_format_validation_error(exc)}", file=sys.stderr)
        return 2

    service = CacheGatewayService(config)
    service.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
