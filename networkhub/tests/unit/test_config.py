import pytest

from networkhub.errors import ConfigurationError
from networkhub.network.config import NetworkConfig, NodeConfig, load_network_config
from networkhub.network.genesis import GenesisFork

NODE_JSON = {
    "id": "node1",
    "key": "01" * 32,
    "apiAddr": "0.0.0.0:8669",
    "p2pListenPort": 11235,
    "genesis": {"forkConfig": {"VIPGASCOEF": 0}},
    "additionalArgs": {"api-allowed-tracers": "all"},
}


def test_node_from_dict():
    node = NodeConfig.from_dict(NODE_JSON)
    assert node.id == "node1"
    assert node.api_addr == "0.0.0.0:8669"
    assert node.p2p_listen_port == 11235
    assert node.genesis.fork == GenesisFork.POST_COEF
    assert node.additional_args == {"api-allowed-tracers": "all"}
    assert node.to_dict()["genesisFork"] == "post_coef"


def test_node_defaults():
    node = NodeConfig.from_dict(NODE_JSON)
    assert node.effective_verbosity == 3
    assert node.effective_api_cors == "*"
    assert node.http_addr == "http://127.0.0.1:8669"
    assert node.api_host == "0.0.0.0"
    assert node.api_port == 8669


def test_bad_api_addr():
    node = NodeConfig(id="node1", api_addr="localhost")
    with pytest.raises(ConfigurationError) as exc:
        node.api_port
    assert exc.value.node_id == "node1"


def test_missing_id():
    with pytest.raises(ConfigurationError):
        NodeConfig.from_dict({"key": "01" * 32})


def test_network_id_and_lookup():
    cfg = NetworkConfig.from_dict(
        {"environment": "docker", "baseId": "demo", "nodes": [NODE_JSON]}
    )
    assert cfg.id == "dockerdemo"
    assert cfg.get_node("node1") is cfg.nodes[0]
    assert cfg.get_node("missing") is None
    assert not cfg.is_public_network()


def test_public_network_detection():
    assert NetworkConfig("local", "testnet").public_network_name() == "test"
    assert NetworkConfig("local", "mainnet").public_network_name() == "main"

    follower = NodeConfig(id="f1", additional_args={"network": "main"})
    cfg = NetworkConfig("docker", "follower", nodes=[follower])
    assert cfg.is_public_network()
    assert cfg.public_network_name() == "main"


def test_missing_fields():
    with pytest.raises(ConfigurationError, match="environment"):
        NetworkConfig.from_dict({"nodes": []})
    with pytest.raises(ConfigurationError, match="nodes"):
        NetworkConfig.from_dict({"environment": "local"})


def test_load_yaml(tmp_path):
    path = tmp_path / "network.yml"
    path.write_text(
        "environment: local\n"
        "baseId: three\n"
        "nodes:\n"
        "  - id: node1\n"
        "    key: '" + "01" * 32 + "'\n"
        "    apiAddr: 127.0.0.1:8669\n"
        "    p2pListenPort: 11235\n"
        "    verbosity: 4\n"
    )
    cfg = load_network_config(str(path))
    assert cfg.id == "localthree"
    assert cfg.nodes[0].effective_verbosity == 4
    assert cfg.nodes[0].genesis is None


def test_load_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("environment: [unclosed\n")
    with pytest.raises(ConfigurationError, match="invalid YAML"):
        load_network_config(str(path))


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_network_config(str(tmp_path / "missing.yml"))
