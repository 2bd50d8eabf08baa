"""
Adapters package for the Gateway Service.

Contains the HTTP client wrapper for the upstream image service. The
adapter encapsulates:

- Base URL and request shape
- Timeouts and redirect handling
- Mapping of every failure mode onto a FetchResult

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .upstream_client import FetchOutcome, FetchResult, UpstreamClient

__all__ = [
    "FetchOutcome",
    "FetchResult",
    "UpstreamClient",
]
