"""
Setup Sticky Disk Command

Setup phase use case: acquire, prepare and expose a sticky disk.
"""

from typing import Optional

import structlog

from stickydisk.application.services.mount_orchestrator import MountOrchestrator
from stickydisk.domain.ports import IProvisioningPort
from stickydisk.domain.value_objects import StickyDiskSession


logger = structlog.get_logger(__name__)


class SetupStickyDiskCommand:
    """
    Command handler for the setup phase.

    Never raises: a job without its cache is degraded, not blocked.
    """

    def __init__(self, orchestrator: MountOrchestrator, provisioning: IProvisioningPort):
        self._orchestrator = orchestrator
        self._provisioning = provisioning

    async def execute(self, sticky_disk_key: str, sticky_disk_path: str) -> Optional[StickyDiskSession]:
        """
        Mount a sticky disk at the requested path.

        Args:
            sticky_disk_key: User-chosen cache identity
            sticky_disk_path: Path where the job expects the cache

        Returns:
            The mounted session, or None when the job proceeds without cache
        """
        try:
            return await self._orchestrator.run(sticky_disk_key, sticky_disk_path)
        except Exception as e:
            logger.warning("Sticky disk setup failed", sticky_disk_key=sticky_disk_key, error=str(e), exc_info=True)
            return None
        finally:
            await self._provisioning.close()
