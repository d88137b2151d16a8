import types

import pytest

import kubenode.node.start as start_mod
from kubenode.config.models import MachineConfig, NodeConfig
from kubenode.drivers.state import MachineState
from kubenode.errors import DriverError, NodeStatusError
from kubenode.node.node import Node, NodeStatus, machine_name_for, node_status_for
from kubenode.node.start import new_config, start_nodes


class FakeDriver:
    def __init__(self, state, ip="10.0.0.7"):
        self.state = state
        self.ip = ip
        self.stopped = False

    def get_state(self):
        return self.state

    def get_ip(self):
        return self.ip

    def stop(self):
        self.stopped = True


class FakeAPI:
    def __init__(self, hosts=None):
        self.hosts = hosts or {}
        self.saved = []

    def exists(self, name):
        return name in self.hosts

    def load(self, name):
        return self.hosts[name]

    def save(self, host):
        self.saved.append(host.name)

    def runner_for(self, host):
        return ("runner", host.name)


def _node(api, name="node-2", cluster="demo"):
    return Node(NodeConfig(name=name), MachineConfig(cpus=4), cluster, api)


# ----------------- status mapping -----------------

@pytest.mark.parametrize(
    "state, expected",
    [
        (MachineState.RUNNING, NodeStatus.RUNNING),
        (MachineState.STARTING, NodeStatus.RUNNING),
        (MachineState.STOPPING, NodeStatus.RUNNING),
        (MachineState.STOPPED, NodeStatus.STOPPED),
        (MachineState.PAUSED, NodeStatus.STOPPED),
        (MachineState.SAVED, NodeStatus.STOPPED),
    ],
)
def test_status_mapping(state, expected):
    assert node_status_for("demo-node-2", state) == expected


@pytest.mark.parametrize("state", [MachineState.ERROR, MachineState.TIMEOUT])
def test_error_states_raise(state):
    with pytest.raises(NodeStatusError) as ei:
        node_status_for("demo-node-2", state)
    assert ei.value.machine == "demo-node-2"
    assert "Error state" in str(ei.value)


@pytest.mark.parametrize("state", [MachineState.NONE, "Hibernating"])
def test_unknown_states_raise(state):
    with pytest.raises(NodeStatusError, match="Unknown state"):
        node_status_for("demo-node-2", state)


def test_status_strings():
    assert str(NodeStatus.NOT_CREATED) == "NotCreated"
    assert str(NodeStatus.RUNNING) == "Running"
    assert str(NodeStatus.STOPPED) == "Stopped"


# ----------------- Node -----------------

def test_machine_name():
    assert machine_name_for("demo", "node-2") == "demo-node-2"
    n = _node(FakeAPI())
    assert n.name == "node-2"
    assert n.machine_name == "demo-node-2"


def test_machine_config_is_a_copy_with_the_machine_name():
    n = _node(FakeAPI())
    mc = n.machine_config()
    assert mc.machine_name == "demo-node-2"
    assert mc.cpus == 4
    assert n.base_config.machine_name == "kubenode"


def test_status_not_created():
    assert _node(FakeAPI()).status() == NodeStatus.NOT_CREATED


def test_status_is_live():
    driver = FakeDriver(MachineState.RUNNING)
    host = types.SimpleNamespace(name="demo-node-2", driver=driver)
    n = _node(FakeAPI({"demo-node-2": host}))
    assert n.status() == NodeStatus.RUNNING
    driver.state = MachineState.STOPPED
    assert n.status() == NodeStatus.STOPPED
    driver.state = MachineState.ERROR
    with pytest.raises(NodeStatusError):
        n.status()


def test_ip_runner_and_stop():
    driver = FakeDriver(MachineState.RUNNING, ip="10.0.0.9")
    host = types.SimpleNamespace(name="demo-node-2", driver=driver)
    api = FakeAPI({"demo-node-2": host})
    n = _node(api)

    assert n.ip() == "10.0.0.9"
    assert n.runner() == ("runner", "demo-node-2")
    n.stop()
    assert driver.stopped
    assert api.saved == ["demo-node-2"]


def test_ip_error_is_wrapped():
    class Broken(FakeDriver):
        def get_ip(self):
            raise DriverError("no lease")

    host = types.SimpleNamespace(name="demo-node-2", driver=Broken(MachineState.RUNNING))
    n = _node(FakeAPI({"demo-node-2": host}))
    with pytest.raises(Exception, match="demo-node-2"):
        n.ip()


def test_node_start_uses_derived_machine_config(monkeypatch):
    seen = []
    monkeypatch.setattr("kubenode.node.node.start_host", lambda api, cfg: seen.append(cfg))
    _node(FakeAPI()).start()
    assert [c.machine_name for c in seen] == ["demo-node-2"]


# ----------------- start_nodes -----------------

def test_new_config_copies_base():
    base = MachineConfig(machine_name="m", cpus=3)
    c = new_config(base, "m-1")
    assert c.machine_name == "m-1"
    assert c.cpus == 3
    assert base.machine_name == "m"


def test_start_nodes_is_sequential(monkeypatch):
    calls = []

    def fake_start_host(api, cfg):
        calls.append(cfg.machine_name)
        return cfg.machine_name

    monkeypatch.setattr(start_mod, "start_host", fake_start_host)
    hosts = start_nodes(FakeAPI(), MachineConfig(machine_name="m"), 3)
    assert calls == ["m-1", "m-2", "m-3"]
    assert hosts == ["m-1", "m-2", "m-3"]


def test_start_nodes_stops_at_first_failure(monkeypatch):
    calls = []
    boom = DriverError("m-2 failed to boot")

    def fake_start_host(api, cfg):
        calls.append(cfg.machine_name)
        if cfg.machine_name == "m-2":
            raise boom
        return cfg.machine_name

    monkeypatch.setattr(start_mod, "start_host", fake_start_host)
    with pytest.raises(DriverError) as ei:
        start_nodes(FakeAPI(), MachineConfig(machine_name="m"), 3)

    assert calls == ["m-1", "m-2"]
    assert ei.value is boom


def test_start_nodes_zero_count(monkeypatch):
    monkeypatch.setattr(start_mod, "start_host", lambda api, cfg: pytest.fail("should not start"))
    assert start_nodes(FakeAPI(), MachineConfig(machine_name="m"), 0) == []
