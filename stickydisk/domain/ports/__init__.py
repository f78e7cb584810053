"""
Domain Ports

Port interfaces defining contracts between layers.
All dependencies on external systems are abstracted through ports.
"""

from .provisioning_port import IProvisioningPort
from .block_device_port import IBlockDevicePort
from .job_state_port import IJobStatePort
from .step_outcome_port import IStepOutcomePort

__all__ = [
    "IProvisioningPort",
    "IBlockDevicePort",
    "IJobStatePort",
    "IStepOutcomePort",
]
