"""
Job State Port Interface

Defines the contract for the record bridging setup and teardown.
"""

from abc import ABC, abstractmethod

from stickydisk.domain.value_objects import JobState, JobStateField


class IJobStatePort(ABC):
    """
    Port interface for the persistent job state record.

    Setup and teardown run as separate processes; this record is the only
    channel between them.
    """

    @abstractmethod
    def write(self, name: JobStateField, value: str) -> None:
        """
        Persist one field.

        Raises:
            JobStateError: If the field was already written by this process
                or the backing store cannot be written
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Start an empty record for a new job."""
        pass

    @abstractmethod
    def read(self) -> JobState:
        """Load the record written by the setup phase."""
        pass
