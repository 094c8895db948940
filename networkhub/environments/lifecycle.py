"""
Lifecycle handles returned by a manager when it starts a node.
"""

from enum import Enum


class StopOutcome(str, Enum):
    GRACEFUL = "graceful"
    KILLED = "killed"


class Lifecycle:
    """A started node: a child process or a container."""

    node_id: str = ""

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> StopOutcome:
        """Stop the node, escalating to a forced kill after the grace period."""
        raise NotImplementedError
