"""
Gateway caching package.

Provides the local cache store used by the gateway to serve image blobs
without contacting the upstream service. Entries are flat files named after
their resource key; there is no expiry and invalidation is explicit (DELETE).
"""

from .cache_store import LocalCacheStore, entry_filename

__all__ = [
    "LocalCacheStore",
    "entry_filename",
]
