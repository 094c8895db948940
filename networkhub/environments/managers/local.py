"""
LocalManager - Runs thor nodes as local processes.
"""

import os
from typing import Any, Sequence

from networkhub.constants import DEFAULT_LOCAL_API_HOST, LOCAL, LOCAL_ENODE_IP
from networkhub.environments.lifecycle import Lifecycle
from networkhub.environments.local_node import LocalNode
from networkhub.environments.managers.base import BaseManager
from networkhub.errors import ConfigurationError
from networkhub.network.config import NetworkConfig, NodeConfig


class LocalManager(BaseManager):
    environment = LOCAL
    default_api_host = DEFAULT_LOCAL_API_HOST

    def _build(self, builder: Any) -> str:
        return builder.build()

    def validate_node(self, node_cfg: NodeConfig, network_cfg: NetworkConfig) -> None:
        if not node_cfg.exec_artifact:
            raise ConfigurationError("thor binary is not set", node_id=node_cfg.id)
        if not os.path.exists(node_cfg.exec_artifact):
            raise ConfigurationError(
                f"thor binary not found at {node_cfg.exec_artifact}",
                node_id=node_cfg.id,
            )

        base_dir = os.path.join(os.path.dirname(node_cfg.exec_artifact), node_cfg.id)
        if not node_cfg.config_dir:
            node_cfg.config_dir = os.path.join(base_dir, "config")
        if not node_cfg.data_dir:
            node_cfg.data_dir = os.path.join(base_dir, "data")

        if node_cfg.genesis is None and not network_cfg.is_public_network():
            raise ConfigurationError("genesis is not set", node_id=node_cfg.id)

        super().validate_node(node_cfg, network_cfg)

    def generate_enodes(self, network_cfg: NetworkConfig) -> list[str]:
        if network_cfg.is_public_network():
            return []
        return [node.enode(LOCAL_ENODE_IP) for node in network_cfg.nodes]

    def start_node(
        self, node_cfg: NodeConfig, network_cfg: NetworkConfig, enodes: Sequence[str]
    ) -> Lifecycle:
        node = LocalNode(node_cfg, enodes, network_cfg.public_network_name())
        node.start()
        return node
