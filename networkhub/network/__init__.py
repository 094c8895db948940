"""
Network model - configs, genesis payloads, enodes and health checks.
"""

from networkhub.network.config import NetworkConfig, NodeConfig, load_network_config
from networkhub.network.genesis import Genesis, GenesisFork, marshal_genesis

__all__ = [
    "NetworkConfig",
    "NodeConfig",
    "load_network_config",
    "Genesis",
    "GenesisFork",
    "marshal_genesis",
]
