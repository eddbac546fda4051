"""Ownership of the Sparkplug edge node session under test.

The session itself (NBIRTH/NDEATH, sequence numbers, aliases, payload
encoding) belongs to a Sparkplug B library; this module only creates it,
connects it, announces it and tears it down again.
"""

import logging
import threading
from typing import Callable, Dict, Optional, Protocol

from .config import TCKEdgeConfig
from .const import BIRTH_METRICS
from .exceptions import SessionError

_LOGGER = logging.getLogger(__name__)


class EdgeSession(Protocol):
    """What the driver needs from a device-protocol session.

    Every method raises on failure.
    """

    def connect(self) -> None: ...

    def publish_birth(self, metrics: Dict[str, float]) -> None: ...

    def disconnect(self) -> None: ...


SessionFactory = Callable[[str, str, TCKEdgeConfig], EdgeSession]


class SparkplugEdgeSession:
    """EdgeSession backed by mqtt-spb-wrapper's ``MqttSpbEntityEdgeNode``."""

    def __init__(self, group_id: str, edge_node_id: str, config: TCKEdgeConfig) -> None:
        try:
            from mqtt_spb_wrapper import MqttSpbEntityEdgeNode
        except ImportError as e:
            raise SessionError("mqtt-spb-wrapper is not installed (pip install --no-deps mqtt-spb-wrapper protobuf)") from e

        self.group_id = group_id
        self.edge_node_id = edge_node_id
        self.host, self.port = config.broker_address()
        self.username = config.username
        self.password = config.password
        self._node = MqttSpbEntityEdgeNode(group_id, edge_node_id)
        self._connected = False

    def connect(self) -> None:
        if not self._node.connect(self.host, self.port, self.username, self.password):
            raise SessionError(f"broker {self.host}:{self.port} refused edge node {self.edge_node_id}")
        self._connected = True

    def publish_birth(self, metrics: Dict[str, float]) -> None:
        for name, value in metrics.items():
            self._node.data.set_value(name, value)
        if self._node.publish_birth() is False:
            raise SessionError("NBIRTH was not published")

    def disconnect(self) -> None:
        if self._connected:
            self._node.disconnect()
            self._connected = False


class SessionManager:
    """Holds at most one edge session at a time."""

    def __init__(self, config: TCKEdgeConfig, factory: Optional[SessionFactory] = None,
                 reporter=None) -> None:
        self.config = config
        self.factory = factory or SparkplugEdgeSession
        self.reporter = reporter
        self.session: Optional[EdgeSession] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self.session is not None

    def _log(self, message: str) -> None:
        if self.reporter is not None:
            self.reporter.info(message)
        else:
            _LOGGER.info(message)

    def create(self, group_id: str, edge_node_id: str,
               metrics: Optional[Dict[str, float]] = None) -> EdgeSession:
        """Create, connect and announce a new session.

        Raises SessionError if a session already exists or any step fails.
        A session that fails half way is disconnected and discarded.
        """
        if metrics is None:
            metrics = BIRTH_METRICS

        with self._lock:
            if self.session is not None:
                raise SessionError("Edge Node already exists")

            self._log(f"Creating Edge Node group_id={group_id}, edge_node_id={edge_node_id}")

            session = None
            try:
                session = self.factory(group_id, edge_node_id, self.config)

                self._log("Connecting Edge Node to broker")
                try:
                    session.connect()
                except Exception as e:
                    raise SessionError(f"Failed to connect: {e}") from e

                self._log("Publishing NBIRTH")
                try:
                    session.publish_birth(metrics)
                except Exception as e:
                    raise SessionError(f"Failed to publish NBIRTH: {e}") from e

            except Exception as e:
                if session is not None:
                    self._discard(session)
                if isinstance(e, SessionError):
                    raise
                raise SessionError(f"Exception: {e}") from e

            self.session = session
            self._log("Edge Node created and NBIRTH published")
            return session

    def release(self) -> None:
        """Disconnect and drop the current session, if any."""
        with self._lock:
            session, self.session = self.session, None

        if session is not None:
            self._discard(session)

    @staticmethod
    def _discard(session: EdgeSession) -> None:
        try:
            session.disconnect()
        except Exception as e:
            _LOGGER.warning(f"Edge Node disconnect failed: {e}")
