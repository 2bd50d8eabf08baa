"""
Domain logic for the Gateway Service.

Resource key extraction and the cache operations dispatched by the router.
"""

from .resource_key import parse_resource_key, is_valid_resource_key
from .operations import CacheOperations

__all__ = [
    "parse_resource_key",
    "is_valid_resource_key",
    "CacheOperations",
]
