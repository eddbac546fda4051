"""Tests for the command line launcher."""

import signal

import pytest

import tck_edge.__main__ as launcher
from tck_edge.exceptions import TransportError


class FakeNode:
    instances = []
    start_error = None
    handlers = {}

    def __init__(self, config):
        self.config = config
        self.started = False
        self.stopped = False
        FakeNode.instances.append(self)

    def start(self):
        if FakeNode.start_error is not None:
            raise FakeNode.start_error
        self.started = True
        FakeNode.handlers[signal.SIGTERM](signal.SIGTERM, None)

    def stop(self):
        self.stopped = True


@pytest.fixture
def fake_node(monkeypatch):
    FakeNode.instances = []
    FakeNode.start_error = None
    FakeNode.handlers = {}
    monkeypatch.setattr(launcher, "TCKEdgeNode", FakeNode)
    monkeypatch.setattr(launcher.signal, "signal",
                        lambda signum, handler: FakeNode.handlers.__setitem__(signum, handler))
    for var in ("MQTT_BROKER", "MQTT_HOST", "MQTT_USER", "MQTT_PASSWORD",
                "TCK_GROUP_ID", "TCK_EDGE_NODE_ID"):
        monkeypatch.delenv(var, raising=False)
    return FakeNode


class TestMain:
    def test_flags_build_config(self, fake_node) -> None:
        rc = launcher.main([
            "--broker", "tcp://10.0.0.8:1883",
            "--group-id", "MyGroup",
            "--edge-node-id", "Edge01",
            "--username", "tck",
            "--password", "secret",
        ])

        assert rc == 0
        node = fake_node.instances[-1]
        assert node.config.broker_url == "tcp://10.0.0.8:1883"
        assert (node.config.group_id, node.config.edge_node_id) == ("MyGroup", "Edge01")
        assert (node.config.username, node.config.password) == ("tck", "secret")

    def test_signal_triggers_orderly_stop(self, fake_node) -> None:
        assert launcher.main([]) == 0

        node = fake_node.instances[-1]
        assert node.started and node.stopped
        assert set(fake_node.handlers) == {signal.SIGINT, signal.SIGTERM}

    def test_start_failure_exits_nonzero(self, fake_node) -> None:
        fake_node.start_error = TransportError("Unsupported broker scheme: ws")

        assert launcher.main([]) == 1
        assert not fake_node.instances[-1].stopped

    def test_env_defaults(self, fake_node, monkeypatch) -> None:
        monkeypatch.setenv("MQTT_HOST", "core-mosquitto")
        monkeypatch.setenv("TCK_GROUP_ID", "EnvGroup")

        launcher.main([])

        config = fake_node.instances[-1].config
        assert config.broker_url == "tcp://core-mosquitto:1883"
        assert config.group_id == "EnvGroup"
