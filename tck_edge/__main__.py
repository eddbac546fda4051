#!/usr/bin/env python3
"""
Sparkplug TCK Edge Node

Connects to the broker used by the TCK console and waits for test
commands on SPARKPLUG_TCK/#.

Usage:
    python3 -m tck_edge [--broker URL] [--group-id ID] [--edge-node-id ID]
                        [--username USER] [--password PASS] [--log-level LEVEL]

Example:
    python3 -m tck_edge --broker tcp://localhost:1883 --group-id MyGroup --edge-node-id Edge01
"""

import argparse
import logging
import os
import signal
import sys
import threading

from . import __version__
from .config import LOG_LEVELS, TCKEdgeConfig
from .exceptions import TransportError
from .node import TCKEdgeNode

log = logging.getLogger('tck_edge')


def build_parser(defaults: TCKEdgeConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tck-edge-node", description="Sparkplug TCK Edge Node")
    parser.add_argument("--broker", default=defaults.broker_url,
                        help=f"MQTT broker URL (default: {defaults.broker_url})")
    parser.add_argument("--group-id", default=defaults.group_id,
                        help=f"Group ID (default: {defaults.group_id})")
    parser.add_argument("--edge-node-id", default=defaults.edge_node_id,
                        help=f"Edge Node ID (default: {defaults.edge_node_id})")
    parser.add_argument("--username", default=defaults.username, help="MQTT username (optional)")
    parser.add_argument("--password", default=defaults.password, help="MQTT password (optional)")
    parser.add_argument("--log-level", default=os.environ.get('LOG_LEVEL', 'info'),
                        help="DEBUG, INFO, WARNING or ERROR (default: info)")
    return parser


def setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(level_name.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )


def main(argv=None) -> int:
    defaults = TCKEdgeConfig.from_env()
    args = build_parser(defaults).parse_args(argv)
    setup_logging(args.log_level)

    config = TCKEdgeConfig(
        broker_url=args.broker,
        username=args.username,
        password=args.password,
        client_id_prefix=defaults.client_id_prefix,
        group_id=args.group_id,
        edge_node_id=args.edge_node_id,
        utc_window_ms=defaults.utc_window_ms,
    )

    log.info("=" * 50)
    log.info(f"Sparkplug TCK Edge Node v{__version__}")
    log.info(f"Broker URL: {config.broker_url}")
    log.info(f"Group ID: {config.group_id}")
    log.info(f"Edge Node ID: {config.edge_node_id}")
    if config.username:
        log.info(f"Username: {config.username}")
    log.info("=" * 50)

    shutdown = threading.Event()

    def request_shutdown(signum, frame):
        log.info(f"Received signal {signum}, shutting down...")
        shutdown.set()

    signal.signal(signal.SIGINT, request_shutdown)
    signal.signal(signal.SIGTERM, request_shutdown)

    node = TCKEdgeNode(config)
    try:
        node.start()
    except TransportError as e:
        log.error(f"Failed to start TCK Edge Node: {e}")
        return 1

    log.info("Waiting for test commands from TCK Console... (Ctrl+C to exit)")
    try:
        while not shutdown.wait(1.0):
            pass
    finally:
        node.stop()

    log.info("TCK Edge Node terminated.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
