"""TCK edge node: control channel + orchestrator + reporter."""

import logging
from typing import Callable, Optional

from .commands import parse_config, parse_result_config
from .config import TCKEdgeConfig
from .const import (
    CFG_UTC_WINDOW,
    CONFIG_TOPIC,
    CONSOLE_PROMPT_TOPIC,
    RESULT_CONFIG_TOPIC,
    TEST_CONTROL_TOPIC,
)
from .control_channel import ControlChannel
from .exceptions import CommandError
from .orchestrator import TestOrchestrator, TestRun
from .reporter import Reporter
from .session import SessionFactory, SessionManager

log = logging.getLogger(__name__)


class TCKEdgeNode:
    """Edge-role test driver for the Sparkplug TCK console."""

    def __init__(self, config: TCKEdgeConfig,
                 session_factory: Optional[SessionFactory] = None,
                 channel: Optional[ControlChannel] = None,
                 prompt: Callable[[str], str] = input,
                 client_factory=None) -> None:
        self.config = config
        self.prompt = prompt

        self.channel = channel or ControlChannel(config, self.handle_message, client_factory)
        self.run = TestRun()
        self.reporter = Reporter(self.channel, self.run)
        self.sessions = SessionManager(config, session_factory, self.reporter)
        self.orchestrator = TestOrchestrator(self.reporter, self.sessions, self.run)

        self.handlers = {
            TEST_CONTROL_TOPIC: self.orchestrator.handle_test_control,
            CONSOLE_PROMPT_TOPIC: self.handle_console_prompt,
            CONFIG_TOPIC: self.handle_config,
            RESULT_CONFIG_TOPIC: self.handle_result_config,
        }

    def start(self) -> None:
        """Begin connecting the control channel. Raises TransportError."""
        self.channel.connect()

    def stop(self) -> None:
        self.sessions.release()
        self.channel.disconnect()

    def is_running(self) -> bool:
        return self.channel.running

    # ------------------------------------------------------------------
    # Inbound routing
    # ------------------------------------------------------------------
    def handle_message(self, topic: str, payload: str) -> None:
        handler = self.handlers.get(topic)
        if handler is None:
            return
        handler(payload)

    def handle_console_prompt(self, message: str) -> None:
        """Show the operator prompt and publish the typed reply."""
        print("\n=== CONSOLE PROMPT ===")
        print(message)
        print("======================")

        try:
            response = self.prompt("\nEnter response (PASS/FAIL): ")
        except EOFError:
            response = ""
        response = response.strip()

        if response:
            self.reporter.publish_console_reply(response)

    def handle_config(self, message: str) -> None:
        try:
            command = parse_config(message)
        except CommandError as e:
            self.reporter.error(f"{e}, keeping {CFG_UTC_WINDOW} {self.config.utc_window_ms} ms")
            return

        if command is None:
            log.debug(f"Ignoring config message: {message!r}")
            return

        self.config.utc_window_ms = command.milliseconds
        self.reporter.info(f"UTC window set to {self.config.utc_window_ms} ms")

    def handle_result_config(self, message: str) -> None:
        if parse_result_config(message) is not None:
            self.reporter.info(f"Result config: {message}")
