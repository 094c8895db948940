"""Pytest configuration for networkhub tests.

Shared fixtures build small network configs without touching Docker or
spawning real thor processes.
"""

import pytest

from networkhub.allocators.ports import PortAllocator
from networkhub.network.config import NetworkConfig, NodeConfig
from networkhub.network.genesis import Genesis, GenesisFork

# secp256k1 private keys 1..6
KEYS = [f"{i:064x}" for i in range(1, 7)]


@pytest.fixture
def genesis():
    return Genesis(
        GenesisFork.POST_COEF,
        {
            "launchTime": 1703180212,
            "gaslimit": 10000000,
            "extraData": "",
            "accounts": [],
            "authority": [],
            "params": {},
            "executor": {"approvers": []},
            "forkConfig": {
                "VIP191": 0,
                "ETH_CONST": 0,
                "BLOCKLIST": 0,
                "ETH_IST": 0,
                "VIP214": 0,
                "FINALITY": 0,
                "VIPGASCOEF": 0,
            },
        },
    )


@pytest.fixture
def thor_binary(tmp_path):
    path = tmp_path / "bin" / "thor"
    path.parent.mkdir(parents=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def port_allocator():
    return PortAllocator()


@pytest.fixture
def make_node(genesis):
    def _make(index, **overrides):
        fields = {
            "id": f"node{index}",
            "key": KEYS[index - 1],
            "api_addr": f"127.0.0.1:{8668 + index}",
            "p2p_listen_port": 11234 + index,
            "genesis": genesis,
        }
        fields.update(overrides)
        return NodeConfig(**fields)

    return _make


@pytest.fixture
def make_network(make_node):
    def _make(environment="local", count=3, base_id="demo", **node_overrides):
        nodes = [make_node(i, **node_overrides) for i in range(1, count + 1)]
        return NetworkConfig(environment=environment, base_id=base_id, nodes=nodes)

    return _make


@pytest.fixture
def keys():
    return list(KEYS)
