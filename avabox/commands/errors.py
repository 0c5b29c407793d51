"""
Typed error classes for avabox.

This module provides the error hierarchy used across the test network tooling:
- AvaboxError: Base exception for all avabox errors
- ProvisionError: Node volume could not be prepared
- NodeError: A node container operation failed
- NetworkResolutionError: A bootstrap peer address could not be resolved
- ClientError: JSON-RPC communication errors
- TransientTransportError: Premature close while polling (recovered locally)
- CancellationError: A wait was aborted through the cancel signal
- TransactionError: A subnet pipeline step was rejected
- ValidationError / ConfigurationError: Input and config file problems
"""

from typing import Any, Optional


class AvaboxError(Exception):
    """Base exception class for all avabox errors.

    Attributes:
        message: Human-readable error message
        code: Optional error code for programmatic handling
        details: Optional dictionary with additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
        }
        if self.code:
            result["code"] = self.code
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ProvisionError(AvaboxError):
    """Raised when a node's storage cannot be prepared.

    Raised when:
    - The node volume cannot be created
    - Volume ownership cannot be assigned
    - A configuration artifact cannot be written
    """

    def __init__(
        self,
        message: str,
        node_index: Optional[int] = None,
        artifact: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.node_index = node_index
        self.artifact = artifact
        details = details or {}
        if node_index is not None:
            details["node_index"] = node_index
        if artifact:
            details["artifact"] = artifact
        super().__init__(message, code="PROVISION_FAILED", details=details)


class NodeError(AvaboxError):
    """Raised when a node container cannot be created, started or inspected.

    Raised when:
    - The Docker daemon rejects a container operation
    - A started container does not publish its RPC port
    """

    def __init__(
        self,
        message: str,
        node_index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.node_index = node_index
        details = details or {}
        if node_index is not None:
            details["node_index"] = node_index
        super().__init__(message, code="NODE_ERROR", details=details)


class NetworkResolutionError(AvaboxError):
    """Raised when a bootstrap peer's staking address cannot be resolved.

    The whole bootstrap computation fails with it; no partial peer list is
    ever produced.
    """

    def __init__(
        self,
        message: str,
        node_index: Optional[int] = None,
        peer_index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.node_index = node_index
        self.peer_index = peer_index
        details = details or {}
        if node_index is not None:
            details["node_index"] = node_index
        if peer_index is not None:
            details["peer_index"] = peer_index
        super().__init__(
            message, code="NETWORK_RESOLUTION_FAILED", details=details
        )


class ClientError(AvaboxError):
    """Client/API communication errors.

    Raised when:
    - HTTP request fails
    - API returns unexpected response
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.url = url
        self.status_code = status_code
        details = details or {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, code=code, details=details)


class RpcError(ClientError):
    """Raised when a node answers a JSON-RPC call with an error object."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        method: Optional[str] = None,
        rpc_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.method = method
        self.rpc_code = rpc_code
        details = details or {}
        if method:
            details["method"] = method
        if rpc_code is not None:
            details["rpc_code"] = rpc_code
        super().__init__(message, url=url, code="RPC_ERROR", details=details)


class TransientTransportError(ClientError):
    """Raised when the node closes the connection before answering.

    Readiness polling treats this as "not bootstrapped yet".
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, url=url, code="PREMATURE_CLOSE", details=details)


class CancellationError(AvaboxError):
    """Raised when a blocking wait is aborted through the cancel signal."""

    def __init__(
        self,
        message: str,
        waiting_for: Optional[str] = None,
        node_index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.waiting_for = waiting_for
        self.node_index = node_index
        details = details or {}
        if waiting_for:
            details["waiting_for"] = waiting_for
        if node_index is not None:
            details["node_index"] = node_index
        super().__init__(message, code="CANCELLED", details=details)


class TransactionError(AvaboxError):
    """Raised when a subnet pipeline step is rejected.

    Remaining steps for that node are skipped; accepted transactions stay.
    """

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        node_index: Optional[int] = None,
        subnet: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.step = step
        self.node_index = node_index
        self.subnet = subnet
        details = details or {}
        if step:
            details["step"] = step
        if node_index is not None:
            details["node_index"] = node_index
        if subnet:
            details["subnet"] = subnet
        super().__init__(message, code="TRANSACTION_FAILED", details=details)


class ValidationError(AvaboxError):
    """Input validation errors.

    Raised when:
    - Function arguments are invalid
    - An address has an unknown chain prefix
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, code=code or "VALIDATION_FAILED", details=details)


class ConfigurationError(AvaboxError):
    """Configuration-related errors.

    Raised when:
    - The network file is missing or malformed
    - Required values are not set
    - A node references a subnet that is not declared
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.config_file = config_file
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        super().__init__(message, code=code or "CONFIGURATION_ERROR", details=details)


__all__ = [
    "AvaboxError",
    "ProvisionError",
    "NodeError",
    "NetworkResolutionError",
    "ClientError",
    "RpcError",
    "TransientTransportError",
    "CancellationError",
    "TransactionError",
    "ValidationError",
    "ConfigurationError",
]
