"""MQTT connection used only for TCK test orchestration.

paho runs the network loop in its own thread. Inbound messages are queued
by the paho callback and handed to the dispatch callback one at a time on a
separate dispatcher thread, so a handler that blocks (the console prompt)
never stalls keepalives or acknowledgements.
"""

import logging
import queue
import threading
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from .config import TCKEdgeConfig
from .const import CONTROL_TOPICS, QOS_AT_LEAST_ONCE
from .exceptions import TransportError

log = logging.getLogger(__name__)

MessageHandler = Callable[[str, str], None]


def create_mqtt_client(config: TCKEdgeConfig) -> mqtt.Client:
    """Build the paho client for the control channel (no auto reconnect)."""
    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        config.control_client_id,
        clean_session=True,
        reconnect_on_failure=False,
    )
    if config.username:
        client.username_pw_set(config.username, config.password)
    return client


class ControlChannel:
    """Connect / disconnect / publish over one paho client."""

    def __init__(self, config: TCKEdgeConfig, on_message: MessageHandler,
                 client_factory: Optional[Callable[[TCKEdgeConfig], mqtt.Client]] = None) -> None:
        self.config = config
        self.on_message = on_message

        # Transport up / control subscriptions acknowledged
        self.connected = False
        self.running = False

        self._client = (client_factory or create_mqtt_client)(config)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        self._client.on_message = self._on_message
        self._client.on_connect_fail = self._on_connect_fail

        self._address = ""
        self._loop_started = False
        self._closing = False
        self._disconnected = threading.Event()

        self._inbox: queue.Queue = queue.Queue()
        self._dispatcher: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Start connecting. Returns as soon as the request is accepted.

        Raises TransportError if the broker address is invalid or the
        connection attempt cannot be started. Socket errors arrive later in
        ``_on_connect_fail``, the MQTT handshake result in ``_on_connect``.
        """
        try:
            host, port = self.config.broker_address()
        except ValueError as e:
            raise TransportError(str(e)) from e

        self._address = f"{host}:{port}"
        self._closing = False
        self._start_dispatcher()

        log.info(f"Connecting to MQTT: {self._address}")
        try:
            self._client.connect_async(host, port, self.config.keepalive)
        except Exception as e:
            self._stop_dispatcher()
            raise TransportError(f"Failed to start connect: {e}") from e

        rc = self._client.loop_start()
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self._stop_dispatcher()
            raise TransportError(f"Failed to start MQTT loop: {mqtt.error_string(rc)}")
        self._loop_started = True

    def disconnect(self) -> None:
        """Best-effort, time-bounded teardown. Safe to call repeatedly."""
        if not self._loop_started and not self.connected:
            self._stop_dispatcher()
            return

        self._closing = True
        if self.connected:
            self._disconnected.clear()
            try:
                self._client.disconnect()
            except Exception as e:
                log.warning(f"MQTT disconnect error: {e}")
            if not self._disconnected.wait(self.config.disconnect_timeout):
                log.warning(f"No disconnect acknowledgement after {self.config.disconnect_timeout}s")

        if self._loop_started:
            self._client.loop_stop()
            self._loop_started = False

        self.connected = False
        self.running = False
        self._stop_dispatcher()

    def publish(self, topic: str, payload: str, qos: int = 0) -> mqtt.MQTTMessageInfo:
        """Submit a message without waiting for the broker.

        Raises TransportError without touching the network when not connected.
        """
        if not self.connected:
            raise TransportError("Not connected")

        info = self._client.publish(topic, payload, qos=qos, retain=False)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"Failed to publish: {mqtt.error_string(info.rc)}")
        return info

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log.error(f"Connection failed: {reason_code}")
            self.connected = False
            return

        self.connected = True
        log.info("Connected to broker")

        result, _mid = client.subscribe([(topic, QOS_AT_LEAST_ONCE) for topic in CONTROL_TOPICS])
        if result != mqtt.MQTT_ERR_SUCCESS:
            log.error(f"Failed to subscribe: {mqtt.error_string(result)}")

    def _on_connect_fail(self, client, userdata):
        log.error(f"Connection failed: could not reach {self._address}")
        self.connected = False
        # paho keeps retrying a failed first connection until told to stop
        client.disconnect()

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        refused = [str(rc) for rc in reason_code_list if rc.is_failure]
        if refused:
            log.error(f"Subscribe failed: {', '.join(refused)}")
            return

        self.running = True
        log.info("Subscribed to TCK control topics")
        log.info("TCK Edge Node ready")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        self.connected = False
        self.running = False
        self._disconnected.set()

        if self._closing:
            log.info("Disconnected from MQTT")
        else:
            log.warning(f"Connection lost (rc={reason_code})")

    def _on_message(self, client, userdata, msg):
        payload = msg.payload.decode('utf-8', errors='replace')
        log.debug(f"Received: {msg.topic} -> {payload}")
        self._inbox.put((msg.topic, payload))

    # ------------------------------------------------------------------
    # Dispatcher thread
    # ------------------------------------------------------------------
    def _start_dispatcher(self):
        if self._dispatcher is not None and self._dispatcher.is_alive():
            return
        self._inbox = queue.Queue()
        self._dispatcher = threading.Thread(target=self._dispatch_loop, args=(self._inbox,),
                                            name="tck-dispatch", daemon=True)
        self._dispatcher.start()

    def _stop_dispatcher(self):
        thread = self._dispatcher
        if thread is None:
            return
        self._dispatcher = None
        self._inbox.put(None)
        if thread is not threading.current_thread():
            thread.join(timeout=self.config.disconnect_timeout)

    def _dispatch_loop(self, inbox: queue.Queue):
        while True:
            item = inbox.get()
            if item is None:
                break

            topic, payload = item
            try:
                self.on_message(topic, payload)
            except Exception as e:
                log.error(f"Error handling {topic}: {e}")
