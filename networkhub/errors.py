"""
Typed error classes for networkhub.

This module provides the error hierarchy raised by the orchestration layer:
- NetworkHubError: Base exception for all networkhub errors
- ConfigurationError: Invalid or incomplete network/node configuration
- ResourceExhaustedError: No free IP address or port is left
- ExecutionError: A process, container or image operation failed
- LifecycleError: An operation was called in the wrong state
- NetworkHubTimeoutError: A bounded wait elapsed
"""

import copy
from typing import Any, Optional


class NetworkHubError(Exception):
    """Base exception class for all networkhub errors.

    Attributes:
        message: Human-readable error message
        node_id: Node the error relates to, if any
        network_id: Network the error relates to, if any
        code: Error code for programmatic handling
        details: Dictionary with additional error context
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        network_id: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.node_id = node_id
        self.network_id = network_id
        self.code = code or self.default_code
        self.details = details or {}
        if node_id:
            self.details["node_id"] = node_id
        if network_id:
            self.details["network_id"] = network_id
        super().__init__(message)

    def wrap(self, context: str) -> "NetworkHubError":
        """Return a copy of this error with ``context`` prefixed to the message.

        The copy keeps the concrete class, so callers can still tell a
        configuration error from an execution error after wrapping.
        """
        wrapped = copy.copy(self)
        wrapped.message = f"{context}: {self.message}"
        wrapped.details = dict(self.details)
        wrapped.args = (wrapped.message,)
        return wrapped

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


class ConfigurationError(NetworkHubError):
    """Configuration-related errors.

    Raised when:
    - The executable artifact or docker image is missing
    - An API address cannot be parsed
    - The environment tag is not supported
    - Two nodes share an ID, P2P port or API address
    """

    default_code = "CONFIGURATION_ERROR"


class ResourceExhaustedError(NetworkHubError):
    """No more addresses or ports can be handed out.

    Kept apart from ConfigurationError so callers can retry with a
    different subnet or port range.
    """

    default_code = "RESOURCE_EXHAUSTED"


class IpExhaustedError(ResourceExhaustedError):
    default_code = "IP_EXHAUSTED"


class PortExhaustedError(ResourceExhaustedError):
    default_code = "PORT_EXHAUSTED"


class ExecutionError(NetworkHubError):
    """Errors from spawning processes, creating containers or pulling images."""

    default_code = "EXECUTION_FAILED"


class LifecycleError(NetworkHubError):
    """Precondition violations.

    Raised when:
    - The network is started twice
    - A node ID is added twice or removed while unknown
    - An action is requested before an environment is loaded
    """

    default_code = "LIFECYCLE_ERROR"


class NetworkHubTimeoutError(NetworkHubError):
    """Raised when a bounded wait elapses."""

    default_code = "TIMEOUT"

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        node_id: Optional[str] = None,
        network_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.timeout_seconds = timeout_seconds
        details = details or {}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message, node_id=node_id, network_id=network_id, details=details
        )


class PeerConvergenceTimeoutError(NetworkHubTimeoutError):
    default_code = "PEER_CONVERGENCE_TIMEOUT"


__all__ = [
    "NetworkHubError",
    "ConfigurationError",
    "ResourceExhaustedError",
    "IpExhaustedError",
    "PortExhaustedError",
    "ExecutionError",
    "LifecycleError",
    "NetworkHubTimeoutError",
    "PeerConvergenceTimeoutError",
]
