"""
Network and node configuration.

Configs are plain dataclasses built from the JSON/YAML documents callers
supply. ``NetworkConfig.nodes`` is mutated in place as nodes are added and
removed from a running network.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from networkhub.constants import (
    DEFAULT_API_CORS,
    DEFAULT_VERBOSITY,
    PUBLIC_BASE_IDS,
    THOR_NETWORK_MAIN,
    THOR_NETWORK_TEST,
)
from networkhub.errors import ConfigurationError
from networkhub.network.enode import enode as format_enode
from networkhub.network.genesis import Genesis
from networkhub.utils import http_addr_from_api_addr, split_api_addr


@dataclass
class NodeConfig:
    id: str
    key: str = ""
    api_addr: str = ""
    api_cors: str = ""
    p2p_listen_port: int = 0
    config_dir: str = ""
    data_dir: str = ""
    exec_artifact: str = ""
    genesis: Optional[Genesis] = None
    additional_args: dict[str, str] = field(default_factory=dict)
    verbosity: int = 0
    fake_execution: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("node entry must be a mapping")
        node_id = data.get("id")
        if not node_id:
            raise ConfigurationError("node entry is missing 'id'")

        genesis = None
        if data.get("genesis") is not None:
            try:
                genesis = Genesis.from_dict(data["genesis"], data.get("genesisFork"))
            except ConfigurationError as e:
                raise e.wrap(f"node {node_id}") from e

        try:
            return cls(
                id=str(node_id),
                key=data.get("key") or "",
                api_addr=data.get("apiAddr") or "",
                api_cors=data.get("apiCORS") or "",
                p2p_listen_port=int(data.get("p2pListenPort") or 0),
                config_dir=data.get("configDir") or "",
                data_dir=data.get("dataDir") or "",
                exec_artifact=data.get("execArtifact") or "",
                genesis=genesis,
                additional_args={
                    str(k): str(v) for k, v in (data.get("additionalArgs") or {}).items()
                },
                verbosity=int(data.get("verbosity") or 0),
                fake_execution=bool(data.get("fakeExecution", False)),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"invalid node config: {e}", node_id=str(node_id)
            ) from e

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "key": self.key,
            "apiAddr": self.api_addr,
            "apiCORS": self.api_cors,
            "p2pListenPort": self.p2p_listen_port,
            "configDir": self.config_dir,
            "dataDir": self.data_dir,
            "execArtifact": self.exec_artifact,
            "additionalArgs": dict(self.additional_args),
            "verbosity": self.verbosity,
            "fakeExecution": self.fake_execution,
        }
        if self.genesis is not None:
            result["genesis"] = copy.deepcopy(self.genesis.payload)
            result["genesisFork"] = self.genesis.fork.value
        return result

    @property
    def effective_verbosity(self) -> int:
        return self.verbosity or DEFAULT_VERBOSITY

    @property
    def effective_api_cors(self) -> str:
        return self.api_cors or DEFAULT_API_CORS

    @property
    def api_host(self) -> str:
        return split_api_addr(self.api_addr, self.id)[0]

    @property
    def api_port(self) -> int:
        return split_api_addr(self.api_addr, self.id)[1]

    @property
    def http_addr(self) -> str:
        return http_addr_from_api_addr(self.api_addr)

    @property
    def public_network(self) -> Optional[str]:
        """The public network this node joins, if ``additionalArgs`` names one."""
        name = self.additional_args.get("network")
        if name in (THOR_NETWORK_MAIN, THOR_NETWORK_TEST):
            return name
        return None

    def enode(self, ip: str) -> str:
        try:
            return format_enode(self.key, ip, self.p2p_listen_port)
        except ConfigurationError as e:
            raise e.wrap(f"node {self.id}") from e


@dataclass
class NetworkConfig:
    environment: str
    base_id: str = ""
    nodes: list[NodeConfig] = field(default_factory=list)
    thor_builder: Any = None

    @property
    def id(self) -> str:
        return self.environment + self.base_id

    @classmethod
    def from_dict(cls, data: dict[str, Any], thor_builder: Any = None) -> "NetworkConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("network config must be a mapping")
        for required in ("environment", "nodes"):
            if required not in data:
                raise ConfigurationError(f"missing required field: {required}")
        nodes = data["nodes"] or []
        if not isinstance(nodes, list):
            raise ConfigurationError("'nodes' must be a list")

        return cls(
            environment=str(data["environment"]),
            base_id=str(data.get("baseId") or data.get("baseid") or ""),
            nodes=[NodeConfig.from_dict(node) for node in nodes],
            thor_builder=thor_builder,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "baseId": self.base_id,
            "nodes": [node.to_dict() for node in self.nodes],
        }

    def get_node(self, node_id: str) -> Optional[NodeConfig]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def public_network_name(self) -> Optional[str]:
        """Return ``main`` or ``test`` when the network joins a public chain."""
        if self.base_id in PUBLIC_BASE_IDS:
            return PUBLIC_BASE_IDS[self.base_id]
        for node in self.nodes:
            if node.public_network:
                return node.public_network
        return None

    def is_public_network(self) -> bool:
        return self.public_network_name() is not None


def load_network_config(config_path: str, thor_builder: Any = None) -> NetworkConfig:
    """Load a network configuration from a YAML or JSON file."""
    try:
        with open(config_path) as file:
            data = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"invalid YAML format in {config_path}: {e}"
        ) from e
    except OSError as e:
        raise ConfigurationError(f"failed to read {config_path}: {e}") from e

    try:
        return NetworkConfig.from_dict(data, thor_builder=thor_builder)
    except ConfigurationError as e:
        raise e.wrap(config_path) from e
