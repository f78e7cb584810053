"""
Control Plane RPC Infrastructure
"""

from .stickydisk_client import StickyDiskClient

__all__ = ["StickyDiskClient"]
