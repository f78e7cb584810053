"""
Asynchronous command runner.

Runs host utilities (mount, mkfs, blkid, ...) through asyncio
subprocesses and raises CommandError on a non-zero exit status.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog


logger = structlog.get_logger(__name__)


class CommandError(Exception):
    """A host command exited with a non-zero status or could not start."""

    def __init__(self, argv: Sequence[str], returncode: Optional[int], stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(self.argv)}' failed with exit code {returncode}: {stderr.strip()}"
        )


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished command."""

    argv: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Executes commands, optionally through sudo.

    Block device metadata and mount tables require root; the CI user is
    expected to have passwordless sudo.
    """

    def __init__(self, use_sudo: bool = True, timeout: Optional[float] = None):
        """
        Initialize the runner.

        Args:
            use_sudo: Prefix privileged commands with ``sudo``
            timeout: Optional per-command timeout in seconds
        """
        self._use_sudo = use_sudo
        self._timeout = timeout

    async def run(self, *argv: str, privileged: bool = False, check: bool = True) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            *argv: Program and arguments
            privileged: Run through sudo when sudo is enabled
            check: Raise CommandError on a non-zero exit status

        Returns:
            CommandResult with decoded stdout and stderr

        Raises:
            CommandError: If the command fails and ``check`` is True
        """
        full_argv = list(argv)
        if privileged and self._use_sudo:
            full_argv = ["sudo", *full_argv]

        logger.debug("Running command", argv=" ".join(full_argv))

        try:
            process = await asyncio.create_subprocess_exec(
                *full_argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(full_argv, None, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise CommandError(full_argv, None, f"timed out after {self._timeout}s")

        result = CommandResult(
            argv=full_argv,
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

        if check and not result.ok:
            raise CommandError(full_argv, result.returncode, result.stderr)
        return result
