"""
HTTP Infrastructure

Cache deletion client.
"""

from .cache_client import (
    CacheDeletionClient,
    CacheDeletionError,
    CacheValidationError,
    build_deletion_path,
    validate_deletion_request,
)

__all__ = [
    "CacheDeletionClient",
    "CacheDeletionError",
    "CacheValidationError",
    "build_deletion_path",
    "validate_deletion_request",
]
