"""
Overseer - The entry point callers use to drive one network.
"""

import threading
from typing import Optional

from networkhub.allocators.ports import PortAllocator, default_port_allocator
from networkhub.constants import DOCKER, LOCAL
from networkhub.environments.launcher import (
    DockerEnvironment,
    Launcher,
    LocalEnvironment,
)
from networkhub.environments.lifecycle import Lifecycle
from networkhub.errors import ConfigurationError, LifecycleError
from networkhub.network.config import NetworkConfig, NodeConfig

ENVIRONMENTS = {
    LOCAL: LocalEnvironment,
    DOCKER: DockerEnvironment,
}


class Overseer:
    """Selects the environment for a network and serializes every call to it."""

    def __init__(
        self,
        network_cfg: Optional[NetworkConfig] = None,
        port_allocator: Optional[PortAllocator] = None,
    ):
        self._lock = threading.Lock()
        self._port_allocator = port_allocator or default_port_allocator()
        self._env: Optional[Launcher] = None
        if network_cfg is not None:
            self.load(network_cfg)

    def load(self, network_cfg: NetworkConfig) -> None:
        """Create the environment for ``network_cfg``.

        Raises:
            ConfigurationError: If the environment tag is not supported. The
                previously loaded environment, if any, is kept.
        """
        with self._lock:
            env_class = ENVIRONMENTS.get(network_cfg.environment)
            if env_class is None:
                raise ConfigurationError(
                    f"unsupported environment: {network_cfg.environment!r}",
                    network_id=network_cfg.id,
                )
            self._env = env_class(network_cfg, port_allocator=self._port_allocator)

    def _require_env(self) -> Launcher:
        if self._env is None:
            raise LifecycleError("no environment loaded")
        return self._env

    def start_network(self) -> None:
        with self._lock:
            self._require_env().start_network()

    def stop_network(self) -> None:
        with self._lock:
            self._require_env().stop_network()

    def add_node(self, node_cfg: NodeConfig) -> None:
        with self._lock:
            self._require_env().add_node(node_cfg)

    def remove_node(self, node_id: str) -> None:
        with self._lock:
            self._require_env().remove_node(node_id)

    def nodes(self) -> dict[str, Lifecycle]:
        with self._lock:
            return self._require_env().nodes()

    def config(self) -> NetworkConfig:
        with self._lock:
            return self._require_env().config()
