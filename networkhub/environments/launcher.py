"""
Launcher - Starts, stops and reshapes one network through a substrate manager.
"""

import logging
import threading
from typing import Optional, Sequence

import docker

from networkhub.allocators.ports import PortAllocator
from networkhub.environments.lifecycle import Lifecycle
from networkhub.environments.managers import (
    BaseManager,
    DockerManager,
    LocalManager,
    create_manager,
)
from networkhub.errors import ConfigurationError, LifecycleError, NetworkHubError
from networkhub.network.config import NetworkConfig, NodeConfig
from networkhub.utils import console

logger = logging.getLogger(__name__)


class Launcher:
    """Owns the running nodes of one network.

    Every public method holds ``self._lock`` for its whole duration, including
    slow process spawns and image pulls. The lock is per network, not per
    node: enode lists are computed from the full node set inside the same
    critical section that starts the node, and that ordering depends on
    nothing else touching the node set in between.
    """

    def __init__(
        self,
        network_cfg: NetworkConfig,
        manager: Optional[BaseManager] = None,
        port_allocator: Optional[PortAllocator] = None,
    ):
        if network_cfg is None:
            raise ConfigurationError("network configuration cannot be empty")
        self._cfg = network_cfg
        self._manager = manager or create_manager(network_cfg.environment, port_allocator)
        self._nodes: dict[str, Lifecycle] = {}
        self._started = False
        self._lock = threading.Lock()

    @property
    def manager(self) -> BaseManager:
        return self._manager

    @property
    def started(self) -> bool:
        return self._started

    def start_network(self) -> None:
        with self._lock:
            if self._started:
                raise LifecycleError(
                    "network is already running", network_id=self._cfg.id
                )

            if not self._cfg.nodes:
                if not self._cfg.is_public_network():
                    raise LifecycleError(
                        "no nodes defined in the network", network_id=self._cfg.id
                    )
                console.print(
                    f"[cyan]Network {self._cfg.id} joins a public network, no nodes to start[/cyan]"
                )
                self._started = True
                return

            self._apply_artifact(self._cfg.nodes)
            for node_cfg in self._cfg.nodes:
                self._validate(node_cfg)
            self._check_unique(self._cfg.nodes)

            self._manager.prepare(self._cfg)
            enodes = self._manager.generate_enodes(self._cfg)

            for node_cfg in self._cfg.nodes:
                self._nodes[node_cfg.id] = self._start(node_cfg, enodes)

            self._started = True
            console.print(
                f"[green]✓ Network {self._cfg.id} started with {len(self._nodes)} nodes[/green]"
            )

    def stop_network(self) -> None:
        """Stop every running node and release the network's resources.

        Safe to call when nothing is running. Every node is attempted; the
        last stop error is raised afterwards.
        """
        with self._lock:
            last_error: Optional[NetworkHubError] = None
            for node_id, node in list(self._nodes.items()):
                try:
                    self._manager.stop_node(node)
                except NetworkHubError as e:
                    logger.error("Failed to stop node %s: %s", node_id, e)
                    last_error = e.wrap(f"failed to stop node {node_id}")

            had_nodes = bool(self._nodes)
            self._nodes.clear()
            self._started = False
            self._manager.cleanup(self._cfg)

            if last_error is not None:
                raise last_error
            if had_nodes:
                console.print(f"[green]✓ Network {self._cfg.id} stopped[/green]")

    def add_node(self, node_cfg: NodeConfig) -> None:
        """Add a node, starting it right away if the network is running.

        On failure the configuration and any allocations are rolled back.
        """
        with self._lock:
            if node_cfg.id in self._nodes or self._cfg.get_node(node_cfg.id):
                raise LifecycleError(
                    f"node with ID {node_cfg.id} already exists",
                    node_id=node_cfg.id,
                    network_id=self._cfg.id,
                )

            self._cfg.nodes.append(node_cfg)
            if not self._started:
                return

            try:
                self._apply_artifact([node_cfg])
                self._validate(node_cfg)
                self._check_unique(self._cfg.nodes)
                self._manager.prepare(self._cfg)
                enodes = self._manager.generate_enodes(self._cfg)
                node = self._start(node_cfg, enodes)
            except NetworkHubError:
                self._remove_config(node_cfg)
                self._manager.release_node(node_cfg, self._cfg)
                raise

            self._nodes[node_cfg.id] = node

    def remove_node(self, node_id: str) -> None:
        """Stop a node and drop it from the network configuration."""
        with self._lock:
            node_cfg = self._cfg.get_node(node_id)
            node = self._nodes.get(node_id)
            if node is None and node_cfg is None:
                raise LifecycleError(
                    f"node with ID {node_id} does not exist",
                    node_id=node_id,
                    network_id=self._cfg.id,
                )

            stop_error: Optional[NetworkHubError] = None
            if node is not None:
                try:
                    outcome = self._manager.stop_node(node)
                    logger.debug("Node %s stopped (%s)", node_id, outcome.value)
                except NetworkHubError as e:
                    stop_error = e
                del self._nodes[node_id]

            if node_cfg is not None:
                self._remove_config(node_cfg)
                self._manager.release_node(node_cfg, self._cfg)

            if stop_error is not None:
                raise stop_error.wrap(f"unable to stop node {node_id}")

    def nodes(self) -> dict[str, Lifecycle]:
        with self._lock:
            return dict(self._nodes)

    def config(self) -> NetworkConfig:
        with self._lock:
            return self._cfg

    def _apply_artifact(self, node_cfgs: Sequence[NodeConfig]) -> None:
        """Build the thor artifact once and hand it to nodes that lack one."""
        missing = [n for n in node_cfgs if not n.exec_artifact]
        if not missing or self._cfg.thor_builder is None:
            return
        artifact = self._manager.build_artifact(self._cfg.thor_builder)
        if artifact:
            for node_cfg in missing:
                node_cfg.exec_artifact = artifact

    def _validate(self, node_cfg: NodeConfig) -> None:
        try:
            self._manager.validate_node(node_cfg, self._cfg)
        except NetworkHubError as e:
            raise e.wrap(f"failed to validate node {node_cfg.id}") from e

    def _start(self, node_cfg: NodeConfig, enodes: Sequence[str]) -> Lifecycle:
        console.print(f"[cyan]Starting node {node_cfg.id}...[/cyan]")
        try:
            return self._manager.start_node(node_cfg, self._cfg, enodes)
        except NetworkHubError as e:
            raise e.wrap(f"unable to start node {node_cfg.id}") from e

    def _check_unique(self, node_cfgs: Sequence[NodeConfig]) -> None:
        seen_ids: set[str] = set()
        seen_p2p: dict[int, str] = {}
        seen_api: dict[str, str] = {}
        for node_cfg in node_cfgs:
            if node_cfg.id in seen_ids:
                raise ConfigurationError(
                    f"duplicate node ID {node_cfg.id}", node_id=node_cfg.id
                )
            seen_ids.add(node_cfg.id)

            if node_cfg.p2p_listen_port:
                other = seen_p2p.setdefault(node_cfg.p2p_listen_port, node_cfg.id)
                if other != node_cfg.id:
                    raise ConfigurationError(
                        f"P2P port {node_cfg.p2p_listen_port} already used by node {other}",
                        node_id=node_cfg.id,
                    )
            if node_cfg.api_addr:
                other = seen_api.setdefault(node_cfg.api_addr, node_cfg.id)
                if other != node_cfg.id:
                    raise ConfigurationError(
                        f"API address {node_cfg.api_addr} already used by node {other}",
                        node_id=node_cfg.id,
                    )

    def _remove_config(self, node_cfg: NodeConfig) -> None:
        self._cfg.nodes[:] = [n for n in self._cfg.nodes if n is not node_cfg]


class LocalEnvironment(Launcher):
    """A Launcher running its nodes as local processes."""

    def __init__(
        self,
        network_cfg: NetworkConfig,
        port_allocator: Optional[PortAllocator] = None,
    ):
        super().__init__(network_cfg, LocalManager(port_allocator=port_allocator))


class DockerEnvironment(Launcher):
    """A Launcher running its nodes as containers."""

    def __init__(
        self,
        network_cfg: NetworkConfig,
        port_allocator: Optional[PortAllocator] = None,
        client: Optional[docker.DockerClient] = None,
    ):
        super().__init__(
            network_cfg, DockerManager(client=client, port_allocator=port_allocator)
        )


__all__ = ["Launcher", "LocalEnvironment", "DockerEnvironment"]
