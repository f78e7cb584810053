"""
Runner log step checker.

Scans the GitHub Actions runner Worker log for steps whose result is
"failed" or "cancelled". Implements IStepOutcomePort.
"""

import asyncio
import json
import os
import re
from pathlib import Path
from typing import List, Optional

import structlog

from stickydisk.domain.errors import AmbiguousOutcome
from stickydisk.domain.ports import IStepOutcomePort
from stickydisk.domain.value_objects import StepFailure, StepFailureReport


logger = structlog.get_logger(__name__)

FAILURE_PATTERNS = [
    re.compile(r'"result":\s*"failed"'),
    re.compile(r'"result":\s*"cancelled"'),
    re.compile(r"Step result:\s*Failed"),
    re.compile(r"Step result:\s*Cancelled"),
]

JSON_STEP_PATTERN = re.compile(r'\{[^{}]*"result":\s*"(?:failed|cancelled)"[^{}]*\}')

FAILED_RESULTS = {"failed", "cancelled"}

# How far back to look for the opening brace of the enclosing step object
CONTEXT_WINDOW = 500


class RunnerLogStepChecker(IStepOutcomePort):
    """
    Detects failed upstream steps from the runner's ``_diag`` Worker log.

    Implements IStepOutcomePort interface.
    """

    def __init__(self, runner_root: Optional[str] = None, cwd: Optional[str] = None):
        """
        Args:
            runner_root: Runner installation directory; auto-detected when None
            cwd: Working directory used for auto-detection (default: os.getcwd())
        """
        self._runner_root = runner_root
        self._cwd = cwd

    async def check_failures(self) -> StepFailureReport:
        """
        Scan the newest Worker log.

        Implementation of IStepOutcomePort.check_failures().
        """
        try:
            return await asyncio.to_thread(self._check)
        except AmbiguousOutcome as e:
            return StepFailureReport.unavailable(e.message)
        except Exception as e:
            return StepFailureReport.unavailable(f"Error reading logs: {e}")

    def _detect_runner_root(self) -> str:
        cwd = self._cwd or os.getcwd()
        # Jobs run in {runner_root}/_work/{repo}/{repo}
        if "/_work/" in cwd:
            return cwd[: cwd.index("/_work/")]
        for candidate in ("/home/runner", os.environ.get("RUNNER_ROOT", "")):
            if candidate and Path(candidate).exists():
                return candidate
        return cwd

    def _check(self) -> StepFailureReport:
        runner_root = self._runner_root or self._detect_runner_root()
        diag_path = Path(runner_root) / "_diag"

        logger.debug("Looking for runner diagnostics", runner_root=runner_root, diag_path=str(diag_path))

        if not diag_path.is_dir():
            raise AmbiguousOutcome(f"_diag directory not found at {diag_path}")

        # Worker_YYYYMMDD-HHMMSS-utc.log sorts chronologically by name
        worker_logs = sorted(
            p.name for p in diag_path.iterdir() if p.name.startswith("Worker_") and p.name.endswith(".log")
        )
        if not worker_logs:
            raise AmbiguousOutcome("No Worker log files found", {"diag_path": str(diag_path)})

        content = (diag_path / worker_logs[-1]).read_text(encoding="utf-8", errors="replace")
        return parse_worker_log(content)


def parse_worker_log(content: str) -> StepFailureReport:
    """
    Count and describe failed or cancelled steps in a Worker log.

    Args:
        content: Full Worker log text

    Returns:
        StepFailureReport without an error
    """
    failed_count = sum(len(pattern.findall(content)) for pattern in FAILURE_PATTERNS)
    failed_steps: List[StepFailure] = []

    for match in JSON_STEP_PATTERN.finditer(content):
        step = _step_from_context(content, match.start()) or _step_from_json(match.group(0))
        if step is not None:
            failed_steps.append(step)
        else:
            logger.debug("Skipping malformed JSON in log parsing")

    return StepFailureReport(
        has_failures=failed_count > 0,
        failed_count=failed_count,
        failed_steps=failed_steps,
    )


def _step_from_context(content: str, start: int) -> Optional[StepFailure]:
    """Parse the larger JSON object around a match, which carries step names."""
    context_start = content.rfind("{", 0, max(start - CONTEXT_WINDOW, 0) + 1)
    context_start = max(context_start, 0)
    end_marker = content.find("}.", start)
    if end_marker < 0 or end_marker + 1 <= context_start:
        return None
    return _step_from_json(content[context_start:end_marker + 1])


def _step_from_json(text: str) -> Optional[StepFailure]:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict) or data.get("result") not in FAILED_RESULTS:
        return None
    error_messages = data.get("errorMessages") or []
    if not isinstance(error_messages, list):
        error_messages = [str(error_messages)]
    return StepFailure(
        result=data["result"],
        name=data.get("stepName") or data.get("displayName"),
        action=data.get("action"),
        error_messages=[str(m) for m in error_messages],
    )
