"""
Runner Log Infrastructure
"""

from .step_checker import RunnerLogStepChecker, parse_worker_log

__all__ = ["RunnerLogStepChecker", "parse_worker_log"]
