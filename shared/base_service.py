"""
Base service class for the Image Cache Gateway.
"""

from fastapi import FastAPI, Request
from typing import Optional
import time

from prometheus_client import CollectorRegistry

from shared.config import GatewayConfig
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import CacheGatewayError
from shared.responses import send_response


REQUEST_ID_HEADER = "X-Request-ID"


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: GatewayConfig,
                 registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.config = config
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name, registry)

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_exception_handlers()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application.

        Documentation routes are disabled: every path on the service port
        belongs to the gateway router.
        """
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description="Image Cache Gateway",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
            start_time = time.time()

            try:
                response = await call_next(request)
            except Exception as exc:
                self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
                self.metrics.record_error("unhandled")
                response = send_response(500, body="Internal Server Error")

            try:
                duration = time.time() - start_time
                response.headers[REQUEST_ID_HEADER] = request_id

                self.metrics.record_http_request(
                    method=request.method,
                    status_code=response.status_code,
                    duration=duration
                )

                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2)
                )
            finally:
                clear_context()
            return response

    def _setup_exception_handlers(self):
        """Map gateway errors to plain-text responses."""

        @self.app.exception_handler(CacheGatewayError)
        async def cache_gateway_error_handler(request: Request, exc: CacheGatewayError):
            """Handle CacheGatewayError."""
            return self.error_response(exc)

    def error_response(self, exc: CacheGatewayError):
        """Log, count and render a gateway error."""
        log = self.logger.error if exc.status_code >= 500 else self.logger.info
        log(
            "Gateway error",
            code=exc.code,
            status_code=exc.status_code,
            details=exc.details
        )
        self.metrics.record_error(exc.code)
        return send_response(exc.status_code, body=exc.message)

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level
        )
