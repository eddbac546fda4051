#!/usr/bin/env python3
"""
Simulated TCK console.

Drives a running TCK edge node over the broker the same way the Sparkplug
TCK console does, and prints what the node sends back.

Usage:
    python3 tools/tck_console.py <command> [args]

Commands:
    new-test <scenario> [params...]        Send NEW_TEST edge <scenario> ...
    end-test                               Send END_TEST
    utc-window <ms>                        Send CONFIG UTCwindow <ms>
    session <group> <edge> [devices...]    Full SessionEstablishmentTest run
    watch                                  Print LOG/RESULT/CONSOLE_REPLY (Ctrl+C to stop)
"""

import argparse
import os
import sys
import threading
import time
from typing import List, Optional

import paho.mqtt.client as mqtt

from tck_edge.const import (
    CFG_UTC_WINDOW,
    CMD_END_TEST,
    CMD_NEW_TEST,
    CONFIG_TOPIC,
    CONSOLE_REPLY_TOPIC,
    EDGE_PROFILE,
    LOG_TOPIC,
    QOS_AT_LEAST_ONCE,
    RESULT_PASS,
    RESULT_TOPIC,
    SESSION_ESTABLISHMENT_TEST,
    TEST_CONTROL_TOPIC,
)

MQTT_HOST = os.environ.get("MQTT_HOST", "localhost")
MQTT_PORT = int(os.environ.get("MQTT_PORT", "1883"))
MQTT_USER = os.environ.get("MQTT_USER", "")
MQTT_PASS = os.environ.get("MQTT_PASSWORD", "")

WATCH_TOPICS = [LOG_TOPIC, RESULT_TOPIC, CONSOLE_REPLY_TOPIC]


# --- Message builders ---
def build_new_test(scenario: str, params: List[str], profile: str = EDGE_PROFILE) -> str:
    return " ".join([CMD_NEW_TEST, profile, scenario] + list(params))


def build_utc_window(milliseconds: int) -> str:
    return f"{CFG_UTC_WINDOW} {milliseconds}"


# --- Reply collection ---
class ReplyCollector:
    """Collects everything the edge node publishes back to the console."""

    def __init__(self, echo: bool = True):
        self.echo = echo
        self.messages = []
        self._lock = threading.Lock()
        self._result = threading.Event()

    def on_message(self, client, userdata, msg):
        payload = msg.payload.decode("utf-8", errors="replace")
        self.add(msg.topic, payload)

    def add(self, topic: str, payload: str):
        with self._lock:
            self.messages.append((topic, payload))
        if topic == RESULT_TOPIC:
            self._result.set()
        if self.echo:
            print_reply(topic, payload)

    def results(self) -> List[str]:
        with self._lock:
            return [p for t, p in self.messages if t == RESULT_TOPIC]

    def wait_for_result(self, timeout: float) -> Optional[str]:
        if not self._result.wait(timeout):
            return None
        results = self.results()
        return results[-1] if results else None

    def clear_result(self):
        self._result.clear()


def print_reply(topic: str, payload: str):
    if topic == RESULT_TOPIC:
        color = "\033[32m" if payload == RESULT_PASS else "\033[31m"
        print(f"{color}[RESULT] {payload}\033[0m")
    elif topic == LOG_TOPIC:
        if payload.startswith("[WARN]"):
            print(f"\033[33m[LOG] {payload}\033[0m")
        elif payload.startswith("[ERROR]"):
            print(f"\033[31m[LOG] {payload}\033[0m")
        else:
            print(f"[LOG] {payload}")
    else:
        print(f"[REPLY] {payload}")


# --- MQTT helpers ---
def mqtt_connect(collector: Optional[ReplyCollector] = None):
    """Connect to MQTT broker, return client."""
    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, f"tck_console_{int(time.time())}")
    if MQTT_USER:
        client.username_pw_set(MQTT_USER, MQTT_PASS)

    connected = threading.Event()

    def on_connect(c, ud, flags, rc, props=None):
        if rc.is_failure:
            return
        if collector is not None:
            c.subscribe([(t, QOS_AT_LEAST_ONCE) for t in WATCH_TOPICS])
        connected.set()

    client.on_connect = on_connect
    if collector is not None:
        client.on_message = collector.on_message
    client.connect(MQTT_HOST, MQTT_PORT, 60)
    client.loop_start()

    if not connected.wait(3.0):
        print("ERROR: MQTT connection failed")
        sys.exit(1)

    return client


def send(client, topic: str, payload: str):
    client.publish(topic, payload, qos=QOS_AT_LEAST_ONCE).wait_for_publish(timeout=5)
    print(f"  -> {topic}: {payload}")


# --- Commands ---
def cmd_new_test(args):
    collector = ReplyCollector()
    client = mqtt_connect(collector)
    send(client, TEST_CONTROL_TOPIC, build_new_test(args.scenario, args.params, args.profile))
    time.sleep(args.wait)
    client.disconnect()
    return 0


def cmd_end_test(args):
    collector = ReplyCollector()
    client = mqtt_connect(collector)
    send(client, TEST_CONTROL_TOPIC, CMD_END_TEST)
    time.sleep(args.wait)
    client.disconnect()
    return 0


def cmd_utc_window(args):
    collector = ReplyCollector()
    client = mqtt_connect(collector)
    send(client, CONFIG_TOPIC, build_utc_window(args.milliseconds))
    time.sleep(args.wait)
    client.disconnect()
    return 0


def cmd_session(args):
    """NEW_TEST SessionEstablishmentTest, hold, END_TEST, expect PASS."""
    print(f"\n=== {SESSION_ESTABLISHMENT_TEST} {args.group} {args.edge} ===")
    collector = ReplyCollector()
    client = mqtt_connect(collector)

    send(client, TEST_CONTROL_TOPIC,
         build_new_test(SESSION_ESTABLISHMENT_TEST, [args.group, args.edge] + args.devices))

    early = collector.wait_for_result(args.hold)
    if early is not None:
        print(f"\n  Scenario ended before END_TEST: {early}")
        client.disconnect()
        return 1

    collector.clear_result()
    send(client, TEST_CONTROL_TOPIC, CMD_END_TEST)
    verdict = collector.wait_for_result(args.wait)
    client.disconnect()

    print(f"\n  Verdict: {verdict or 'none received'}")
    return 0 if verdict == RESULT_PASS else 1


def cmd_watch(args):
    print("Watching TCK replies (Ctrl+C to stop)...\n")
    client = mqtt_connect(ReplyCollector())
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopped.")
    client.disconnect()
    return 0


# --- Main ---
def main(argv=None):
    parser = argparse.ArgumentParser(description="Simulated Sparkplug TCK console")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("new-test", help="Send NEW_TEST")
    p.add_argument("scenario", help="Scenario name, e.g. SessionEstablishmentTest")
    p.add_argument("params", nargs="*", help="Scenario parameters")
    p.add_argument("--profile", default=EDGE_PROFILE, help="TCK profile (default: edge)")
    p.add_argument("--wait", type=float, default=3.0, help="Seconds to print replies")

    p = sub.add_parser("end-test", help="Send END_TEST")
    p.add_argument("--wait", type=float, default=3.0, help="Seconds to print replies")

    p = sub.add_parser("utc-window", help="Send CONFIG UTCwindow")
    p.add_argument("milliseconds", type=int, help="UTC window in ms")
    p.add_argument("--wait", type=float, default=2.0, help="Seconds to print replies")

    p = sub.add_parser("session", help="Run SessionEstablishmentTest end to end")
    p.add_argument("group", help="Group ID")
    p.add_argument("edge", help="Edge Node ID")
    p.add_argument("devices", nargs="*", help="Device IDs")
    p.add_argument("--hold", type=float, default=5.0, help="Seconds before END_TEST")
    p.add_argument("--wait", type=float, default=5.0, help="Seconds to wait for the verdict")

    sub.add_parser("watch", help="Print replies until Ctrl+C")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    cmds = {
        "new-test": cmd_new_test,
        "end-test": cmd_end_test,
        "utc-window": cmd_utc_window,
        "session": cmd_session,
        "watch": cmd_watch,
    }

    return cmds[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
