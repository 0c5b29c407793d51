"""
Managers module - Focused Docker manager classes.

- BaseManager: Common Docker client utilities
- NetworkManager: Test network creation and inspection
- VolumeManager: Node volumes, ownership and file injection
- NodeManager: Node container creation, start and inspection
"""

from avabox.commands.managers.base import BaseManager
from avabox.commands.managers.network import NetworkInfo, NetworkManager
from avabox.commands.managers.node import NodeManager
from avabox.commands.managers.volume import VolumeManager

__all__ = [
    "BaseManager",
    "NetworkInfo",
    "NetworkManager",
    "NodeManager",
    "VolumeManager",
]
