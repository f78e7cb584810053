#!/usr/bin/env python3
"""
stickydisk CLI - mount, commit and delete sticky disk caches from CI jobs
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from stickydisk.application.commands import SetupStickyDiskCommand, TeardownStickyDiskCommand
from stickydisk.application.services import (
    MountOrchestrator,
    OutcomeReconciler,
    UnmountManager,
)
from stickydisk.infrastructure.block_device import CommandRunner, LinuxBlockDevice
from stickydisk.infrastructure.config import Settings, get_settings
from stickydisk.infrastructure.http import CacheDeletionClient, CacheDeletionError, CacheValidationError
from stickydisk.infrastructure.logging import configure_logging, get_logger
from stickydisk.infrastructure.persistence import create_job_state_store
from stickydisk.infrastructure.rpc import StickyDiskClient
from stickydisk.infrastructure.runner_logs import RunnerLogStepChecker


logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="stickydisk",
        description="Mount, commit and delete sticky disk caches in CI jobs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup", help="Acquire and mount a sticky disk")
    setup_parser.add_argument(
        "--key", "-k",
        default=os.environ.get("INPUT_KEY", ""),
        help="Sticky disk key (default: $INPUT_KEY)"
    )
    setup_parser.add_argument(
        "--path", "-p",
        default=os.environ.get("INPUT_PATH", ""),
        help="Path to expose the sticky disk at (default: $INPUT_PATH)"
    )

    subparsers.add_parser("teardown", help="Unmount and commit or discard the sticky disk")

    delete_parser = subparsers.add_parser("delete-cache", help="Delete remote cache entries")
    delete_parser.add_argument("key", nargs="?", default="", help="Cache key or key prefix")
    delete_parser.add_argument("--version", "-V", default=None, help="Cache version to delete")
    delete_parser.add_argument(
        "--prefix",
        action="store_true",
        help="Delete every cache entry whose key starts with KEY"
    )

    return parser.parse_args(argv)


def build_provisioning_client(settings: Settings) -> StickyDiskClient:
    return StickyDiskClient(
        base_url=settings.control_plane_url,
        region=settings.region,
        installation_model_id=settings.installation_model_id,
        vm_id=settings.vm_id,
        token=settings.stickydisk_token,
        repo_name=settings.repo_name,
        acquire_timeout=settings.acquire_timeout_seconds,
        commit_timeout=settings.commit_timeout_seconds,
    )


def build_setup_command(settings: Settings) -> SetupStickyDiskCommand:
    provisioning = build_provisioning_client(settings)
    block_device = LinuxBlockDevice(CommandRunner(use_sudo=settings.use_sudo))
    orchestrator = MountOrchestrator(
        provisioning=provisioning,
        block_device=block_device,
        job_state=create_job_state_store(settings.state_file),
        internal_mount_base=settings.internal_mount_base,
    )
    return SetupStickyDiskCommand(orchestrator, provisioning)


def build_teardown_command(settings: Settings) -> TeardownStickyDiskCommand:
    provisioning = build_provisioning_client(settings)
    block_device = LinuxBlockDevice(CommandRunner(use_sudo=settings.use_sudo))
    unmount_manager = UnmountManager(
        block_device,
        max_attempts=settings.unmount_max_attempts,
        retry_delay=settings.unmount_retry_delay_seconds,
        durability_flush=settings.durability_flush,
    )
    reconciler = OutcomeReconciler(provisioning, RunnerLogStepChecker(settings.runner_root))
    return TeardownStickyDiskCommand(
        job_state=create_job_state_store(settings.state_file),
        unmount_manager=unmount_manager,
        reconciler=reconciler,
        provisioning=provisioning,
    )


def resolve_path(path: str) -> str:
    """Expand ~ and $VARS the way a shell would, then make the path absolute."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path)))


async def run_setup(settings: Settings, key: str, path: str) -> int:
    if not key or not path:
        logger.warning("Both a sticky disk key and path are required, skipping sticky disk", key=key, path=path)
        return 0
    path = resolve_path(path)
    await build_setup_command(settings).execute(key, path)
    return 0


async def run_teardown(settings: Settings) -> int:
    await build_teardown_command(settings).execute()
    return 0


async def run_delete_cache(settings: Settings, key: str, version: Optional[str], prefix: bool) -> int:
    if not settings.cache_url:
        logger.error("BLACKSMITH_CACHE_URL is not set")
        return 1

    client = CacheDeletionClient(
        base_url=settings.cache_url,
        token=settings.stickydisk_token,
        repo_name=settings.repo_name,
        region=settings.region,
    )
    try:
        result = await client.delete_cache(key, version=version, prefix=prefix)
    except CacheValidationError as e:
        logger.error("Invalid cache deletion request", error=str(e))
        return 1
    except CacheDeletionError as e:
        logger.error("Cache deletion failed", status_code=e.status_code, error=e.message)
        return 1
    except Exception as e:
        logger.error("Cache deletion request failed", error=str(e))
        return 1

    print(result.message)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except (ValidationError, ValueError, OSError) as e:
        configure_logging()
        if args.command == "delete-cache":
            logger.error("Invalid sticky disk configuration", error=str(e))
            return 1
        # Setup and teardown must never fail the job
        logger.warning("Invalid sticky disk configuration, skipping sticky disk", command=args.command, error=str(e))
        return 0
    configure_logging(settings.log_level, settings.log_format)

    if args.command == "setup":
        return asyncio.run(run_setup(settings, args.key, args.path))
    if args.command == "teardown":
        return asyncio.run(run_teardown(settings))
    return asyncio.run(run_delete_cache(settings, args.key, args.version, args.prefix))


def entry_point():
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    entry_point()
