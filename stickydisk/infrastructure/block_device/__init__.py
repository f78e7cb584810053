"""
Block Device Infrastructure

Host command runner and the Linux implementation of IBlockDevicePort.
"""

from .command_runner import CommandError, CommandResult, CommandRunner
from .linux import LinuxBlockDevice

__all__ = ["CommandError", "CommandResult", "CommandRunner", "LinuxBlockDevice"]
