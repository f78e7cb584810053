"""
Sticky disk control plane client.

Implements IProvisioningPort over the Connect protocol (unary JSON over
HTTP POST). Handles:
- The overall acquisition deadline, cancelling the in-flight request
- Commit/release with an independent timeout
- Connect error payloads ({"code": ..., "message": ...})
"""

import asyncio
from typing import Any, Dict, Optional

import httpx
import structlog

from stickydisk.domain.errors import AcquisitionTimeout, TransportError
from stickydisk.domain.ports import IProvisioningPort
from stickydisk.domain.value_objects import AcquiredDisk


logger = structlog.get_logger(__name__)

SERVICE_PATH = "stickydisk.v1.StickyDiskService"
STICKY_DISK_TYPE = "stickydisk"


class StickyDiskClient(IProvisioningPort):
    """
    Async client for the sticky disk control plane.

    Implements IProvisioningPort interface.
    """

    def __init__(
        self,
        base_url: str,
        region: str,
        installation_model_id: str,
        vm_id: str,
        token: str,
        repo_name: str,
        acquire_timeout: float = 45.0,
        commit_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Control plane base URL (e.g., "http://192.168.127.1:5557")
            region: Routing hint for the storage backend
            installation_model_id: Installation identifier
            vm_id: VM identifier used to correlate the session
            token: Sticky disk auth token
            repo_name: Repository name (owner/repo)
            acquire_timeout: Overall acquisition deadline in seconds
            commit_timeout: Commit/release timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.region = region
        self.installation_model_id = installation_model_id
        self.vm_id = vm_id
        self.token = token
        self.repo_name = repo_name
        self.acquire_timeout = acquire_timeout
        self.commit_timeout = commit_timeout
        self._transport = transport

        # Lazy-initialized async client
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                # Deadlines are enforced per call
                timeout=None,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Connect-Protocol-Version": "1",
                },
            )
        return self._client

    async def close(self) -> None:
        """
        Close the HTTP client.

        Implementation of IProvisioningPort.close().
        """
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Invoke a unary Connect method.

        Raises:
            TransportError: On network errors or a non-2xx response
        """
        client = self._get_client()
        try:
            response = await client.post(f"/{SERVICE_PATH}/{method}", json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            code, message = _parse_connect_error(response)
            raise TransportError(
                f"{method} failed with {code}: {message}",
                code=code,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} returned an invalid response body: {e}") from e

    async def acquire(self, sticky_disk_key: str) -> AcquiredDisk:
        """
        Request a block device for a cache key.

        Implementation of IProvisioningPort.acquire().

        Raises:
            TransportError: Network or RPC failure
            AcquisitionTimeout: The deadline expired; the request is cancelled
        """
        payload = {
            "stickyDiskKey": sticky_disk_key,
            "region": self.region,
            "installationModelId": self.installation_model_id,
            "vmId": self.vm_id,
            "stickyDiskType": STICKY_DISK_TYPE,
            "stickyDiskToken": self.token,
            "repoName": self.repo_name,
        }

        logger.debug("Getting sticky disk", sticky_disk_key=sticky_disk_key, region=self.region)

        try:
            body = await asyncio.wait_for(
                self._call("GetStickyDisk", payload),
                timeout=self.acquire_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Request to get sticky disk timed out", timeout=self.acquire_timeout)
            raise AcquisitionTimeout(self.acquire_timeout)

        expose_id = body.get("exposeId")
        device = body.get("diskIdentifier")
        if not expose_id or not device:
            raise TransportError("GetStickyDisk response is missing exposeId or diskIdentifier")

        return AcquiredDisk(expose_id=expose_id, device=device)

    async def commit(
        self,
        expose_id: str,
        sticky_disk_key: str,
        should_commit: bool,
        fs_usage_bytes: Optional[int] = None,
    ) -> bool:
        """
        Commit or release a sticky disk.

        Implementation of IProvisioningPort.commit().

        Returns:
            True if the control plane acknowledged, False otherwise
        """
        payload: Dict[str, Any] = {
            "exposeId": expose_id,
            "stickyDiskKey": sticky_disk_key,
            "vmId": self.vm_id,
            "shouldCommit": should_commit,
            "repoName": self.repo_name,
            "stickyDiskToken": self.token,
        }
        # Omitted (not zero) lets the server fall back to its own sizing;
        # uint64 travels as a decimal string in proto3 JSON
        if fs_usage_bytes is not None and fs_usage_bytes > 0:
            payload["fsUsageBytes"] = str(fs_usage_bytes)

        try:
            await asyncio.wait_for(
                self._call("CommitStickyDisk", payload),
                timeout=self.commit_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Commit request timed out",
                expose_id=expose_id,
                should_commit=should_commit,
                timeout=self.commit_timeout,
            )
            return False
        except TransportError as e:
            logger.warning(
                "Commit request failed",
                expose_id=expose_id,
                should_commit=should_commit,
                error=e.message,
            )
            return False

        return True


def _parse_connect_error(response: httpx.Response) -> tuple:
    """Extract (code, message) from a Connect error response."""
    try:
        body = response.json()
    except ValueError:
        return "unknown", response.text or f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return "unknown", str(body)
    return body.get("code", "unknown"), body.get("message", "")
