from unittest.mock import MagicMock

import pytest

from networkhub.environments.launcher import Launcher
from networkhub.environments.lifecycle import Lifecycle, StopOutcome
from networkhub.environments.managers.base import BaseManager
from networkhub.errors import (
    ConfigurationError,
    ExecutionError,
    LifecycleError,
)
from networkhub.network.config import NetworkConfig


class FakeNode(Lifecycle):
    def __init__(self, node_id, enodes, stop_error=None):
        self.node_id = node_id
        self.enodes = list(enodes)
        self.stop_error = stop_error
        self.stopped = False

    def start(self):
        pass

    def stop(self):
        if self.stop_error is not None:
            raise self.stop_error
        self.stopped = True
        return StopOutcome.GRACEFUL


class FakeManager(BaseManager):
    """Records what the launcher asks of it instead of running anything."""

    environment = "fake"

    def __init__(self, port_allocator, fail_validate=(), fail_start=(), fail_stop=()):
        super().__init__(port_allocator)
        self.fail_validate = set(fail_validate)
        self.fail_start = set(fail_start)
        self.fail_stop = set(fail_stop)
        self.started = {}
        self.released = []
        self.cleanups = 0

    def _build(self, builder):
        return builder.build()

    def validate_node(self, node_cfg, network_cfg):
        if node_cfg.id in self.fail_validate:
            raise ConfigurationError("bad node", node_id=node_cfg.id)
        super().validate_node(node_cfg, network_cfg)

    def generate_enodes(self, network_cfg):
        return [f"enode://{n.id}@127.0.0.1:{n.p2p_listen_port}" for n in network_cfg.nodes]

    def start_node(self, node_cfg, network_cfg, enodes):
        if node_cfg.id in self.fail_start:
            raise ExecutionError("spawn failed", node_id=node_cfg.id)
        stop_error = None
        if node_cfg.id in self.fail_stop:
            stop_error = ExecutionError("stop failed", node_id=node_cfg.id)
        node = FakeNode(node_cfg.id, enodes, stop_error)
        self.started[node_cfg.id] = node
        return node

    def release_node(self, node_cfg, network_cfg):
        self.released.append(node_cfg.id)
        super().release_node(node_cfg, network_cfg)

    def cleanup(self, network_cfg):
        self.cleanups += 1
        super().cleanup(network_cfg)


@pytest.fixture
def launcher_for(port_allocator):
    def _make(network_cfg, **failures):
        manager = FakeManager(port_allocator, **failures)
        return Launcher(network_cfg, manager=manager), manager

    return _make


def test_start_network(make_network, launcher_for):
    cfg = make_network(count=3)
    launcher, manager = launcher_for(cfg)

    launcher.start_network()

    assert launcher.started
    assert set(launcher.nodes()) == {"node1", "node2", "node3"}
    for node in manager.started.values():
        assert len(node.enodes) == 3


def test_start_twice_fails(make_network, launcher_for):
    launcher, _ = launcher_for(make_network(count=1))
    launcher.start_network()

    with pytest.raises(LifecycleError):
        launcher.start_network()


def test_zero_nodes_requires_public_network(launcher_for):
    launcher, _ = launcher_for(NetworkConfig("local", "demo", nodes=[]))
    with pytest.raises(LifecycleError):
        launcher.start_network()

    public, manager = launcher_for(NetworkConfig("local", "testnet", nodes=[]))
    public.start_network()
    assert public.started
    assert public.nodes() == {}
    assert manager.started == {}


def test_partial_start_is_visible_and_stoppable(make_network, launcher_for):
    launcher, manager = launcher_for(make_network(count=3), fail_start={"node2"})

    with pytest.raises(ExecutionError) as exc:
        launcher.start_network()

    assert "unable to start node node2" in str(exc.value)
    assert exc.value.node_id == "node2"
    assert not launcher.started
    assert set(launcher.nodes()) == {"node1"}

    launcher.stop_network()
    assert manager.started["node1"].stopped
    assert launcher.nodes() == {}


def test_validation_error_names_node(make_network, launcher_for):
    launcher, manager = launcher_for(make_network(count=2), fail_validate={"node2"})

    with pytest.raises(ConfigurationError) as exc:
        launcher.start_network()

    assert "failed to validate node node2" in str(exc.value)
    assert manager.started == {}


def test_add_then_remove_restores_state(make_network, make_node, launcher_for):
    cfg = make_network(count=2)
    launcher, manager = launcher_for(cfg)
    launcher.start_network()

    launcher.add_node(make_node(3))
    assert set(launcher.nodes()) == {"node1", "node2", "node3"}
    assert len(manager.started["node3"].enodes) == 3
    assert "enode://node3@127.0.0.1:11237" in manager.started["node3"].enodes

    launcher.remove_node("node3")
    assert set(launcher.nodes()) == {"node1", "node2"}
    assert [n.id for n in cfg.nodes] == ["node1", "node2"]
    assert manager.started["node3"].stopped
    assert not manager.started["node1"].stopped
    assert manager.released == ["node3"]


def test_add_before_start_only_updates_config(make_network, make_node, launcher_for):
    cfg = make_network(count=1)
    launcher, manager = launcher_for(cfg)

    launcher.add_node(make_node(2))

    assert [n.id for n in cfg.nodes] == ["node1", "node2"]
    assert manager.started == {}

    launcher.start_network()
    assert set(launcher.nodes()) == {"node1", "node2"}


def test_add_duplicate_node(make_network, make_node, launcher_for):
    launcher, _ = launcher_for(make_network(count=2))
    with pytest.raises(LifecycleError):
        launcher.add_node(make_node(2))

    launcher.start_network()
    with pytest.raises(LifecycleError):
        launcher.add_node(make_node(1))


def test_failed_add_is_rolled_back(make_network, make_node, launcher_for):
    cfg = make_network(count=2)
    launcher, manager = launcher_for(cfg, fail_start={"node3"})
    launcher.start_network()

    with pytest.raises(ExecutionError):
        launcher.add_node(make_node(3, p2p_listen_port=0))

    assert [n.id for n in cfg.nodes] == ["node1", "node2"]
    assert "node3" not in launcher.nodes()
    assert manager.released == ["node3"]
    assert manager.port_allocator.ports_for(manager.port_group(cfg, make_node(3))) == []


def test_add_with_conflicting_port_is_rolled_back(make_network, make_node, launcher_for):
    cfg = make_network(count=2)
    launcher, _ = launcher_for(cfg)
    launcher.start_network()

    with pytest.raises(ConfigurationError):
        launcher.add_node(make_node(3, p2p_listen_port=11235))

    assert [n.id for n in cfg.nodes] == ["node1", "node2"]


def test_remove_unknown_node(make_network, launcher_for):
    launcher, _ = launcher_for(make_network(count=1))
    with pytest.raises(LifecycleError):
        launcher.remove_node("ghost")


def test_remove_configured_node_before_start(make_network, launcher_for):
    cfg = make_network(count=2)
    launcher, _ = launcher_for(cfg)

    launcher.remove_node("node2")

    assert [n.id for n in cfg.nodes] == ["node1"]


def test_stop_network_is_idempotent(make_network, launcher_for):
    launcher, manager = launcher_for(make_network(count=2))

    launcher.stop_network()
    launcher.start_network()
    launcher.stop_network()
    launcher.stop_network()

    assert not launcher.started
    assert launcher.nodes() == {}
    assert all(node.stopped for node in manager.started.values())


def test_stop_network_attempts_every_node(make_network, launcher_for):
    launcher, manager = launcher_for(make_network(count=3), fail_stop={"node1"})
    launcher.start_network()

    with pytest.raises(ExecutionError) as exc:
        launcher.stop_network()

    assert "failed to stop node node1" in str(exc.value)
    assert manager.started["node2"].stopped
    assert manager.started["node3"].stopped
    assert launcher.nodes() == {}
    assert not launcher.started
    assert manager.cleanups == 1


def test_restart_after_stop(make_network, launcher_for):
    launcher, manager = launcher_for(make_network(count=2))
    launcher.start_network()
    launcher.stop_network()

    launcher.start_network()

    assert set(launcher.nodes()) == {"node1", "node2"}
    assert all(not node.stopped for node in launcher.nodes().values())


@pytest.mark.parametrize(
    "overrides",
    [
        {"p2p_listen_port": 30303},
        {"api_addr": "127.0.0.1:8669"},
    ],
)
def test_duplicate_ports_are_rejected(make_node, launcher_for, overrides):
    cfg = NetworkConfig(
        "local",
        "demo",
        nodes=[
            make_node(1, p2p_listen_port=30303, api_addr="127.0.0.1:8669"),
            make_node(2, **overrides),
        ],
    )
    launcher, manager = launcher_for(cfg)

    with pytest.raises(ConfigurationError) as exc:
        launcher.start_network()

    assert exc.value.node_id == "node2"
    assert manager.started == {}


def test_unset_ports_are_allocated_and_restored(make_node, launcher_for):
    node_cfg = make_node(1, p2p_listen_port=0, api_addr="")
    cfg = NetworkConfig("local", "demo", nodes=[node_cfg])
    launcher, manager = launcher_for(cfg)

    launcher.start_network()

    group = manager.port_group(cfg, node_cfg)
    assert node_cfg.p2p_listen_port > 0
    host, port = node_cfg.api_addr.split(":")
    assert host == "127.0.0.1"
    assert int(port) != node_cfg.p2p_listen_port
    assert len(manager.port_allocator.ports_for(group)) == 2

    launcher.stop_network()

    assert node_cfg.p2p_listen_port == 0
    assert node_cfg.api_addr == ""
    assert manager.port_allocator.ports_for(group) == []


def test_artifact_is_built_once_per_operation(make_node, launcher_for):
    builder = MagicMock(spec=["build"])
    builder.build.return_value = "/opt/thor/bin/thor"
    cfg = NetworkConfig(
        "local",
        "demo",
        nodes=[make_node(1), make_node(2)],
        thor_builder=builder,
    )
    launcher, _ = launcher_for(cfg)

    launcher.start_network()
    builder.build.assert_called_once()
    assert [n.exec_artifact for n in cfg.nodes] == ["/opt/thor/bin/thor"] * 2

    launcher.add_node(make_node(3, exec_artifact="/usr/local/bin/thor"))
    builder.build.assert_called_once()

    launcher.add_node(make_node(4))
    assert builder.build.call_count == 2


def test_builder_download_runs_before_build(make_node, launcher_for):
    builder = MagicMock(spec=["download", "build"])
    builder.build.return_value = "/opt/thor/bin/thor"
    launcher, _ = launcher_for(
        NetworkConfig("local", "demo", nodes=[make_node(1)], thor_builder=builder)
    )

    launcher.start_network()

    assert [c[0] for c in builder.method_calls] == ["download", "build"]


def test_builder_failure_is_execution_error(make_node, launcher_for):
    builder = MagicMock(spec=["build"])
    builder.build.side_effect = RuntimeError("go build failed")
    launcher, manager = launcher_for(
        NetworkConfig("local", "demo", nodes=[make_node(1)], thor_builder=builder)
    )

    with pytest.raises(ExecutionError):
        launcher.start_network()
    assert manager.started == {}


def test_unsupported_environment():
    with pytest.raises(ConfigurationError):
        Launcher(NetworkConfig("kubernetes", "demo", nodes=[]))


def test_networks_with_same_id_keep_separate_ports(make_node, port_allocator):
    first_cfg = NetworkConfig("local", "demo", nodes=[make_node(1, p2p_listen_port=0)])
    second_cfg = NetworkConfig("local", "demo", nodes=[make_node(1, p2p_listen_port=0)])
    first = Launcher(first_cfg, manager=FakeManager(port_allocator))
    second = Launcher(second_cfg, manager=FakeManager(port_allocator))
    first.start_network()
    second.start_network()
    second_group = second.manager.port_group(second_cfg, second_cfg.nodes[0])
    second_port = second_cfg.nodes[0].p2p_listen_port

    first.stop_network()

    assert port_allocator.ports_for(second_group) == [second_port]
    assert second_cfg.nodes[0].p2p_listen_port == second_port
