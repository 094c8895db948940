"""
BaseManager - Substrate independent node preparation shared by the managers.
"""

import logging
import uuid
from typing import Any, Optional, Sequence

from networkhub.allocators.ports import PortAllocator, default_port_allocator
from networkhub.environments.lifecycle import Lifecycle, StopOutcome
from networkhub.errors import ExecutionError, NetworkHubError
from networkhub.network.config import NetworkConfig, NodeConfig
from networkhub.utils import console, join_api_addr, split_api_addr

logger = logging.getLogger(__name__)


class BaseManager:
    """Validates, starts and stops single nodes for one substrate.

    Subclasses provide the substrate specific parts: how the artifact is
    built, how a node is checked, which IP its enode uses and how it runs.
    """

    environment: str = ""
    default_api_host: str = "127.0.0.1"

    def __init__(self, port_allocator: Optional[PortAllocator] = None):
        self.port_allocator = port_allocator or default_port_allocator()
        # distinguishes networks that share an id and an allocator
        self._group_token = uuid.uuid4().hex[:8]
        # node id -> (p2p port, api addr) as configured before allocation
        self._unresolved: dict[str, tuple[int, str]] = {}

    def port_group(self, network_cfg: NetworkConfig, node_cfg: NodeConfig) -> str:
        return f"{network_cfg.id}-{self._group_token}/{node_cfg.id}"

    def build_artifact(self, builder: Any) -> Optional[str]:
        """Download and build the thor artifact with ``builder``.

        Returns:
            The binary path or image tag, or None when there is no builder.
        """
        if builder is None:
            return None
        try:
            if hasattr(builder, "download"):
                builder.download()
            artifact = self._build(builder)
        except NetworkHubError:
            raise
        except Exception as e:
            raise ExecutionError(f"failed to build thor: {e}") from e
        console.print(f"[green]✓ Built thor artifact: {artifact}[/green]")
        return artifact

    def _build(self, builder: Any) -> str:
        raise NotImplementedError

    def resolve_ports(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        """Replace a zero P2P port or API port with a free one."""
        host, api_port = (
            split_api_addr(node_cfg.api_addr, node_cfg.id)
            if node_cfg.api_addr
            else ("", 0)
        )
        if node_cfg.p2p_listen_port and api_port:
            return

        self._unresolved.setdefault(
            node_cfg.id, (node_cfg.p2p_listen_port, node_cfg.api_addr)
        )
        group = self.port_group(network_cfg, node_cfg)
        if not node_cfg.p2p_listen_port:
            node_cfg.p2p_listen_port = self.port_allocator.allocate(group)
        if not api_port:
            port = self.port_allocator.allocate(group)
            node_cfg.api_addr = join_api_addr(host or self.default_api_host, port)
        logger.debug(
            "Resolved %s to p2p port %d, api %s",
            node_cfg.id,
            node_cfg.p2p_listen_port,
            node_cfg.api_addr,
        )

    def validate_node(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        """Fill in defaults and check the node can be started.

        Raises:
            ConfigurationError: If the node cannot be started as configured.
        """
        self.resolve_ports(node_cfg, network_cfg)

    def generate_enodes(self, network_cfg: NetworkConfig) -> list[str]:
        raise NotImplementedError

    def prepare(self, network_cfg: NetworkConfig) -> None:
        """Set up shared substrate resources before the first node starts."""

    def start_node(
        self, node_cfg: NodeConfig, network_cfg: NetworkConfig, enodes: Sequence[str]
    ) -> Lifecycle:
        raise NotImplementedError

    def stop_node(self, node: Lifecycle) -> StopOutcome:
        outcome = node.stop()
        if outcome == StopOutcome.KILLED:
            logger.warning("Node %s was killed after the grace period", node.node_id)
        return outcome

    def release_ports(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        """Give back the ports allocated for ``node_cfg``.

        Allocated fields are reset so a later start allocates again.
        """
        self.port_allocator.release_all(self.port_group(network_cfg, node_cfg))
        original = self._unresolved.pop(node_cfg.id, None)
        if original is not None:
            node_cfg.p2p_listen_port, node_cfg.api_addr = original

    def release_node(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        """Release everything held for a node that leaves the network."""
        self.release_ports(node_cfg, network_cfg)

    def cleanup(self, network_cfg: NetworkConfig) -> None:
        """Release every resource held for the network."""
        for node_cfg in network_cfg.nodes:
            self.release_ports(node_cfg, network_cfg)
