"""
Cache deletion HTTP client.

Deletes remote cache entries by key, key + version, or key prefix.
"""

from typing import Optional
from urllib.parse import quote

import httpx
import structlog

from stickydisk.domain.value_objects import CacheDeletionOutcome, CacheDeletionResult


logger = structlog.get_logger(__name__)

ACCEPT_HEADER = "application/json; version=6.0-preview.1"


class CacheValidationError(ValueError):
    """The deletion request is invalid and was not sent."""
    pass


class CacheDeletionError(Exception):
    """The cache service answered with an unexpected status."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Cache deletion failed with status {status_code}: {message}")


def validate_deletion_request(key: str, version: Optional[str], prefix: bool) -> None:
    """
    Validate a deletion request.

    Raises:
        CacheValidationError: If the combination of arguments is invalid
    """
    if version and prefix:
        raise CacheValidationError("version cannot be combined with prefix")
    if version and not key:
        raise CacheValidationError("version requires a non-empty key")
    if not key and not prefix:
        raise CacheValidationError("key cannot be empty unless prefix is true")


def build_deletion_path(key: str, version: Optional[str] = None, prefix: bool = False) -> str:
    """Build ``/caches/{key}[/{version}][?prefix]``."""
    path = f"/caches/{quote(key, safe='')}"
    if version:
        path += f"/{quote(version, safe='')}"
    if prefix:
        path += "?prefix"
    return path


class CacheDeletionClient:
    """
    Async HTTP client for the remote cache deletion API.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        repo_name: str,
        region: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Cache service base URL
            token: Bearer token
            repo_name: Repository name sent as X-GitHub-Repo-Name
            region: Cache region sent as X-Cache-Region
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.repo_name = repo_name
        self.region = region
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Accept": ACCEPT_HEADER,
            "X-GitHub-Repo-Name": self.repo_name,
            "Authorization": f"Bearer {self.token}",
            "X-Cache-Region": self.region,
        }

    async def delete_cache(
        self,
        key: str,
        version: Optional[str] = None,
        prefix: bool = False,
    ) -> CacheDeletionResult:
        """
        Delete cache entries.

        Args:
            key: Cache key, or key prefix when ``prefix`` is set
            version: Optional cache version (exact key only)
            prefix: Delete every entry whose key starts with ``key``

        Returns:
            CacheDeletionResult; a 404 is reported as NOT_FOUND, not an error

        Raises:
            CacheValidationError: Invalid argument combination
            CacheDeletionError: Any status other than 2xx or 404
            httpx.HTTPError: Network failure
        """
        validate_deletion_request(key, version, prefix)
        url = self.base_url + build_deletion_path(key, version, prefix)

        logger.info("Deleting cache", key=key, version=version, prefix=prefix)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.delete(url, headers=self._headers())

        if response.status_code == 404:
            message = f"No cache entries found for key '{key}'"
            logger.info(message, key=key)
            return CacheDeletionResult(outcome=CacheDeletionOutcome.NOT_FOUND, message=message)

        if 200 <= response.status_code < 300:
            deleted_count = _parse_deleted_count(response)
            if deleted_count is not None:
                message = f"Deleted {deleted_count} cache entries for key '{key}'"
            else:
                message = f"Deleted cache for key '{key}'"
            logger.info(message, key=key, deleted_count=deleted_count)
            return CacheDeletionResult(
                outcome=CacheDeletionOutcome.DELETED,
                message=message,
                deleted_count=deleted_count,
            )

        raise CacheDeletionError(response.status_code, response.text)


def _parse_deleted_count(response: httpx.Response) -> Optional[int]:
    if not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for field_name in ("deleted_count", "deletedCount", "count"):
        value = body.get(field_name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None
