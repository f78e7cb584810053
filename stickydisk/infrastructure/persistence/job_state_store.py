"""
Job state stores.

Persist the setup phase results so the teardown phase, which runs as a
separate process, can find the sticky disk again.
"""

import json
import os
import uuid
from abc import abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional, Set

import structlog

from stickydisk.domain.errors import JobStateError
from stickydisk.domain.ports import IJobStatePort
from stickydisk.domain.value_objects import JobState, JobStateField


logger = structlog.get_logger(__name__)


class _WriteOnceStore(IJobStatePort):
    """Rejects a second write of the same field within one process."""

    def __init__(self):
        self._written: Set[JobStateField] = set()

    def write(self, name: JobStateField, value: str) -> None:
        if name in self._written:
            raise JobStateError(f"Job state field {name.value} was already written", {"field": name.value})
        self._persist(name, value)
        self._written.add(name)
        logger.debug("Job state saved", field=name.value)

    @abstractmethod
    def _persist(self, name: JobStateField, value: str) -> None:
        """Store one field durably."""
        pass


class GitHubActionsStateStore(_WriteOnceStore):
    """
    Job state kept by the GitHub Actions runner.

    Writes go to the ``$GITHUB_STATE`` file; the runner exposes them to the
    post step as ``STATE_<NAME>`` environment variables.
    """

    def __init__(self, state_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            state_file: Path of the runner state file (default: $GITHUB_STATE)
            environ: Environment to read STATE_* values from (default: os.environ)
        """
        super().__init__()
        self._environ = os.environ if environ is None else environ
        self._state_file = state_file or self._environ.get("GITHUB_STATE")

    def _persist(self, name: JobStateField, value: str) -> None:
        if not self._state_file:
            raise JobStateError("GITHUB_STATE is not set")
        # Heredoc syntax keeps multi-line values intact
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in name.value or delimiter in value:
            raise JobStateError(f"Unexpected delimiter in job state value for {name.value}")
        try:
            with open(self._state_file, "a", encoding="utf-8") as f:
                f.write(f"{name.value}<<{delimiter}\n{value}\n{delimiter}\n")
        except OSError as e:
            raise JobStateError(f"Failed to write job state: {e}") from e

    def reset(self) -> None:
        # The runner starts every job with an empty state file
        pass

    def read(self) -> JobState:
        data = {}
        for name in JobStateField:
            value = self._environ.get(f"STATE_{name.value}")
            if value:
                data[name.value] = value
        return JobState.from_dict(data)


class JsonFileStateStore(_WriteOnceStore):
    """
    Job state kept in a local JSON file.

    Used outside GitHub Actions. Each write replaces the file atomically.
    """

    def __init__(self, path: str):
        super().__init__()
        self._path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Job state file unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _persist(self, name: JobStateField, value: str) -> None:
        data = self._load()
        data[name.value] = value
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            temp_path.replace(self._path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise JobStateError(f"Failed to write job state: {e}") from e

    def read(self) -> JobState:
        return JobState.from_dict(self._load())

    def reset(self) -> None:
        if self._path.exists():
            self._path.unlink()


def create_job_state_store(state_file: str, environ: Optional[Mapping[str, str]] = None) -> IJobStatePort:
    """
    Pick the job state store for the current environment.

    Args:
        state_file: JSON file used outside GitHub Actions
        environ: Environment mapping (default: os.environ)
    """
    environ = os.environ if environ is None else environ
    if environ.get("GITHUB_STATE"):
        return GitHubActionsStateStore(environ=environ)
    return JsonFileStateStore(state_file)
