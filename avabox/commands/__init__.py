"""
Commands module - All available CLI commands.
"""

from avabox.commands.errors import (
    AvaboxError,
    CancellationError,
    ClientError,
    ConfigurationError,
    NetworkResolutionError,
    NodeError,
    ProvisionError,
    RpcError,
    TransactionError,
    TransientTransportError,
    ValidationError,
)
from avabox.commands.health import health
from avabox.commands.network import AvalancheNetwork
from avabox.commands.node import AvalancheNode
from avabox.commands.nuke import nuke
from avabox.commands.run import run

__all__ = [
    # Commands
    "AvalancheNetwork",
    "AvalancheNode",
    "health",
    "nuke",
    "run",
    # Error classes
    "AvaboxError",
    "CancellationError",
    "ClientError",
    "ConfigurationError",
    "NetworkResolutionError",
    "NodeError",
    "ProvisionError",
    "RpcError",
    "TransactionError",
    "TransientTransportError",
    "ValidationError",
]
