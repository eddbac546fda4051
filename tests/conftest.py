"""Shared fakes for the TCK edge node tests."""

from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from tck_edge.config import TCKEdgeConfig
from tck_edge.const import LOG_TOPIC, RESULT_TOPIC
from tck_edge.exceptions import TransportError
from tck_edge.node import TCKEdgeNode


# ===========================================================================
# Control channel stand-in
# ===========================================================================
class FakeChannel:
    """Records publishes; raises like ControlChannel when disconnected."""

    def __init__(self, connected=True):
        self.connected = connected
        self.running = connected
        self.published = []
        self.connect_calls = 0
        self.disconnect_calls = 0

    def publish(self, topic, payload, qos=0):
        if not self.connected:
            raise TransportError("Not connected")
        self.published.append((topic, payload, qos))

    def connect(self):
        self.connect_calls += 1

    def disconnect(self):
        self.disconnect_calls += 1
        self.connected = False
        self.running = False

    def payloads(self, topic):
        return [p for t, p, _ in self.published if t == topic]

    def results(self):
        return self.payloads(RESULT_TOPIC)

    def logs(self):
        return self.payloads(LOG_TOPIC)


# ===========================================================================
# Session stand-ins
# ===========================================================================
class FakeSession:
    def __init__(self, group_id, edge_node_id, config, fail_connect=False, fail_birth=False):
        self.group_id = group_id
        self.edge_node_id = edge_node_id
        self.config = config
        self.fail_connect = fail_connect
        self.fail_birth = fail_birth
        self.connected = False
        self.births = []
        self.disconnects = 0

    def connect(self):
        if self.fail_connect:
            raise ConnectionRefusedError("broker unavailable")
        self.connected = True

    def publish_birth(self, metrics):
        if self.fail_birth:
            raise RuntimeError("publish rejected")
        self.births.append(dict(metrics))

    def disconnect(self):
        self.disconnects += 1
        self.connected = False


class FakeSessionFactory:
    """Callable session factory that remembers every session it built."""

    def __init__(self, **session_kwargs):
        self.session_kwargs = session_kwargs
        self.sessions = []
        self.error = None

    def __call__(self, group_id, edge_node_id, config):
        if self.error is not None:
            raise self.error
        session = FakeSession(group_id, edge_node_id, config, **self.session_kwargs)
        self.sessions.append(session)
        return session

    @property
    def last(self):
        return self.sessions[-1]


# ===========================================================================
# paho client stand-in
# ===========================================================================
class FakeReasonCode:
    def __init__(self, value=0):
        self.value = value

    @property
    def is_failure(self):
        return self.value >= 0x80

    def __str__(self):
        return "Success" if self.value < 0x80 else f"Failure({self.value})"


class FakeMqttClient:
    """Just enough of paho's Client for ControlChannel."""

    def __init__(self, config=None):
        self.config = config
        self.on_connect = None
        self.on_disconnect = None
        self.on_subscribe = None
        self.on_message = None
        self.on_connect_fail = None
        self.connect_args = None
        self.connect_error = None
        self.loop_started = False
        self.loop_stopped = False
        self.subscriptions = []
        self.subscribe_rc = mqtt.MQTT_ERR_SUCCESS
        self.publish_rc = mqtt.MQTT_ERR_SUCCESS
        self.published = []
        self.disconnect_calls = 0
        self.ack_disconnect = True
        self.socket_open = False

    def connect_async(self, host, port, keepalive):
        if self.connect_error is not None:
            raise self.connect_error
        self.connect_args = (host, port, keepalive)

    def loop_start(self):
        self.loop_started = True
        return mqtt.MQTT_ERR_SUCCESS

    def loop_stop(self):
        self.loop_stopped = True
        return mqtt.MQTT_ERR_SUCCESS

    def subscribe(self, topics):
        self.subscriptions.extend(topics)
        return self.subscribe_rc, 1

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return SimpleNamespace(rc=self.publish_rc, mid=len(self.published))

    def disconnect(self):
        self.disconnect_calls += 1
        if not self.socket_open:
            return mqtt.MQTT_ERR_NO_CONN
        self.socket_open = False
        if self.ack_disconnect and self.on_disconnect is not None:
            self.on_disconnect(self, None, None, FakeReasonCode(0), None)

    # Helpers to simulate broker events
    def fire_connect_fail(self):
        self.on_connect_fail(self, None)

    def fire_connack(self, value=0):
        self.socket_open = True
        self.on_connect(self, None, {}, FakeReasonCode(value), None)

    def fire_suback(self, *values):
        self.on_subscribe(self, None, 1, [FakeReasonCode(v) for v in values], None)

    def fire_message(self, topic, payload):
        msg = SimpleNamespace(topic=topic, payload=payload.encode("utf-8"))
        self.on_message(self, None, msg)

    def drop_connection(self):
        self.socket_open = False
        self.on_disconnect(self, None, None, FakeReasonCode(0x80), None)


# ===========================================================================
# Fixtures
# ===========================================================================
@pytest.fixture
def config():
    return TCKEdgeConfig(broker_url="tcp://broker.test:1883", disconnect_timeout=0.5)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def factory():
    return FakeSessionFactory()


@pytest.fixture
def replies():
    return []


@pytest.fixture
def node(config, channel, factory, replies):
    def prompt(text):
        return replies.pop(0) if replies else ""

    return TCKEdgeNode(config, session_factory=factory, channel=channel, prompt=prompt)
