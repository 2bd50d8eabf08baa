"""
Shared utilities for the Image Cache Gateway.

This package aggregates common building blocks consumed by the service:

- config: Immutable gateway configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Gateway error taxonomy mapped to HTTP statuses
- responses: The single response construction helper
- base_service: FastAPI application scaffolding

Do not import from service_gateway into shared/.
"""
