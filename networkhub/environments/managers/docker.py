"""
DockerManager - Runs thor nodes as containers on a dedicated bridge network.
"""

import logging
from typing import Any, Optional, Sequence

import docker

from networkhub.allocators.ip import IpAllocator
from networkhub.allocators.ports import PortAllocator
from networkhub.constants import (
    DEFAULT_DOCKER_API_HOST,
    DOCKER,
    DOCKER_HOME_DIR,
    DOCKER_NETWORK_SUFFIX,
)
from networkhub.environments.docker_node import DockerNode, ExposedPort
from networkhub.environments.lifecycle import Lifecycle
from networkhub.environments.managers.base import BaseManager
from networkhub.environments.managers.network import NetworkManager
from networkhub.errors import ConfigurationError, ExecutionError
from networkhub.network.config import NetworkConfig, NodeConfig
from networkhub.utils import console

logger = logging.getLogger(__name__)


class DockerManager(BaseManager):
    """Manages thor containers for one network.

    Each manager owns its own IP allocator, scoped to the bridge network it
    creates, so addresses never clash between networks.
    """

    environment = DOCKER
    default_api_host = DEFAULT_DOCKER_API_HOST

    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        port_allocator: Optional[PortAllocator] = None,
        ip_allocator: Optional[IpAllocator] = None,
    ):
        """Initialize the DockerManager.

        Args:
            client: Optional Docker client. If not provided, creates one from environment.
            port_allocator: Allocator for host ports, defaults to the process-wide one.
            ip_allocator: Allocator for container IPs, defaults to a random /24.
        """
        super().__init__(port_allocator)
        if client is not None:
            self.client = client
        else:
            try:
                self.client = docker.from_env()
            except docker.errors.DockerException as e:
                console.print(f"[red]Failed to connect to Docker: {str(e)}[/red]")
                console.print(
                    "[yellow]Make sure Docker is running and you have permission to access it.[/yellow]"
                )
                raise ExecutionError(f"failed to connect to Docker: {e}") from e

        self.ip_allocator = ip_allocator or IpAllocator.random()
        self.network_manager = NetworkManager(self.client)
        self.exposed_ports: dict[str, ExposedPort] = {}
        self.network_name: Optional[str] = None

    def network_name_for(self, network_cfg: NetworkConfig) -> str:
        return f"{network_cfg.id}{DOCKER_NETWORK_SUFFIX}"

    def _build(self, builder: Any) -> str:
        return builder.build_docker_image()

    def validate_node(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        if not node_cfg.exec_artifact:
            raise ConfigurationError("docker image is not set", node_id=node_cfg.id)

        if not node_cfg.config_dir:
            node_cfg.config_dir = DOCKER_HOME_DIR
        if not node_cfg.data_dir:
            node_cfg.data_dir = DOCKER_HOME_DIR

        if node_cfg.genesis is None and not network_cfg.is_public_network():
            raise ConfigurationError("genesis is not set", node_id=node_cfg.id)

        super().validate_node(node_cfg, network_cfg)

        self.ip_allocator.allocate(node_cfg.id)
        api_port = node_cfg.api_port
        self.exposed_ports[node_cfg.id] = ExposedPort(
            container_port=api_port, host_port=api_port
        )

    def generate_enodes(self, network_cfg: NetworkConfig) -> list[str]:
        if network_cfg.is_public_network():
            return []

        enodes = []
        for node in network_cfg.nodes:
            ip = self.ip_allocator.get(node.id)
            if ip is None:
                logger.debug("Skipping enode for %s, no IP assigned yet", node.id)
                continue
            enodes.append(node.enode(ip))
        return enodes

    def prepare(self, network_cfg: NetworkConfig) -> None:
        if self.network_name is not None:
            return
        name = self.network_name_for(network_cfg)
        self.network_manager.recreate(name, self.ip_allocator.subnet)
        self.network_name = name

    def start_node(
        self, node_cfg: NodeConfig, network_cfg: NetworkConfig, enodes: Sequence[str]
    ) -> Lifecycle:
        ip = self.ip_allocator.allocate(node_cfg.id)
        exposed_port = self.exposed_ports.get(node_cfg.id)
        if exposed_port is None:
            raise ConfigurationError(
                "unable to determine API port", node_id=node_cfg.id
            )

        node = DockerNode(
            self.client,
            node_cfg,
            enodes,
            self.network_name or self.network_name_for(network_cfg),
            ip,
            exposed_port,
            network_cfg.public_network_name(),
        )
        node.start()
        return node

    def release_node(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        """Free the node's IP, exposed port and host ports."""
        super().release_node(node_cfg, network_cfg)
        self.ip_allocator.release(node_cfg.id)
        self.exposed_ports.pop(node_cfg.id, None)

    def cleanup(self, network_cfg: NetworkConfig) -> None:
        super().cleanup(network_cfg)
        if self.network_name is not None:
            self.network_manager.remove(self.network_name)
            self.network_name = None
