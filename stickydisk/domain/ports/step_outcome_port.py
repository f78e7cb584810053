"""
Step Outcome Port Interface

Defines the contract for detecting failed upstream job steps.
"""

from abc import ABC, abstractmethod

from stickydisk.domain.value_objects import StepFailureReport


class IStepOutcomePort(ABC):
    """
    Port interface for upstream step failure detection.
    """

    @abstractmethod
    async def check_failures(self) -> StepFailureReport:
        """
        Scan the job's step outcomes.

        Never raises: a failed scan is reported through
        ``StepFailureReport.error``.
        """
        pass
