"""
Persistence Infrastructure

Job state stores shared by the setup and teardown phases.
"""

from .job_state_store import GitHubActionsStateStore, JsonFileStateStore, create_job_state_store

__all__ = ["GitHubActionsStateStore", "JsonFileStateStore", "create_job_state_store"]
