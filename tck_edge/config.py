"""Runtime configuration for the TCK edge node.

Defaults come from the environment (the same variables the intercom hub
add-on reads); command line flags override them in ``__main__``.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .const import (
    DEFAULT_BROKER_URL,
    DEFAULT_CLIENT_ID_PREFIX,
    DEFAULT_DISCONNECT_TIMEOUT,
    DEFAULT_EDGE_NODE_ID,
    DEFAULT_GROUP_ID,
    DEFAULT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_UTC_WINDOW_MS,
)

LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR
}

SUPPORTED_SCHEMES = ("tcp", "mqtt")


@dataclass
class TCKEdgeConfig:
    """Control configuration. Only ``utc_window_ms`` changes after startup."""

    broker_url: str = DEFAULT_BROKER_URL
    username: str = ""
    password: str = ""
    client_id_prefix: str = DEFAULT_CLIENT_ID_PREFIX
    group_id: str = DEFAULT_GROUP_ID
    edge_node_id: str = DEFAULT_EDGE_NODE_ID
    utc_window_ms: int = DEFAULT_UTC_WINDOW_MS
    keepalive: int = DEFAULT_KEEPALIVE
    disconnect_timeout: float = DEFAULT_DISCONNECT_TIMEOUT

    @property
    def control_client_id(self) -> str:
        return f"{self.client_id_prefix}_control"

    def broker_address(self) -> Tuple[str, int]:
        return parse_broker_url(self.broker_url)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "TCKEdgeConfig":
        """Build a config from MQTT_* and TCK_* environment variables."""
        env = os.environ if environ is None else environ

        broker_url = env.get('MQTT_BROKER', '')
        if not broker_url and env.get('MQTT_HOST'):
            broker_url = f"tcp://{env['MQTT_HOST']}:{env.get('MQTT_PORT', DEFAULT_MQTT_PORT)}"

        _utc_window = env.get('TCK_UTC_WINDOW_MS', '')
        utc_window_ms = int(_utc_window) if _utc_window.isdigit() else DEFAULT_UTC_WINDOW_MS

        return cls(
            broker_url=broker_url or DEFAULT_BROKER_URL,
            username=env.get('MQTT_USER', ''),
            password=env.get('MQTT_PASSWORD', ''),
            client_id_prefix=env.get('TCK_CLIENT_ID_PREFIX', '') or DEFAULT_CLIENT_ID_PREFIX,
            group_id=env.get('TCK_GROUP_ID', '') or DEFAULT_GROUP_ID,
            edge_node_id=env.get('TCK_EDGE_NODE_ID', '') or DEFAULT_EDGE_NODE_ID,
            utc_window_ms=utc_window_ms,
        )


def parse_broker_url(url: str) -> Tuple[str, int]:
    """Split ``tcp://host:port`` (scheme and port optional) into host and port.

    Raises ValueError for an empty host or a scheme other than tcp/mqtt.
    """
    if "://" not in url:
        url = f"tcp://{url}"

    parts = urlsplit(url)
    if parts.scheme not in SUPPORTED_SCHEMES:
        raise ValueError(f"Unsupported broker scheme '{parts.scheme}' in {url}")
    if not parts.hostname:
        raise ValueError(f"Missing broker host in {url}")

    return parts.hostname, parts.port or DEFAULT_MQTT_PORT
