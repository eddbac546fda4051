"""Test run state machine and scenario handlers.

IDLE -> RUNNING -> COMPLETED | FAILED -> IDLE

A NEW_TEST starts a run and dispatches to a scenario handler. Every handler
either publishes exactly one verdict or, for session style scenarios, leaves
the run RUNNING until END_TEST closes it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List

from .commands import EndTest, NewTest, parse_test_control
from .const import (
    EDGE_PROFILE,
    MULTIPLE_BROKER_TEST,
    PRIMARY_HOST_TEST,
    RECEIVE_COMMAND_TEST,
    RESULT_FAIL,
    RESULT_NOT_EXECUTED,
    RESULT_PASS,
    SEND_COMPLEX_DATA_TEST,
    SEND_DATA_TEST,
    SESSION_ESTABLISHMENT_TEST,
    SESSION_TERMINATION_TEST,
)
from .exceptions import CommandError, SessionError
from .reporter import Reporter
from .session import SessionManager

_LOGGER = logging.getLogger(__name__)


class EdgeTestState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class TestRun:
    """The one scenario invocation currently known to the node."""

    state: EdgeTestState = EdgeTestState.IDLE
    name: str = ""
    params: List[str] = field(default_factory=list)
    group_id: str = ""
    edge_node_id: str = ""
    device_ids: List[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.state == EdgeTestState.RUNNING

    def start(self, name: str, params: List[str]) -> None:
        self.state = EdgeTestState.RUNNING
        self.name = name
        self.params = list(params)
        self.group_id = ""
        self.edge_node_id = ""
        self.device_ids = []

    def complete(self) -> None:
        self.state = EdgeTestState.COMPLETED

    def fail(self) -> None:
        self.state = EdgeTestState.FAILED

    def reset(self) -> None:
        self.state = EdgeTestState.IDLE
        self.name = ""
        self.params = []
        self.group_id = ""
        self.edge_node_id = ""
        self.device_ids = []


class TestOrchestrator:
    """Handles TEST_CONTROL messages for the edge profile."""

    def __init__(self, reporter: Reporter, sessions: SessionManager, run: TestRun) -> None:
        self.reporter = reporter
        self.sessions = sessions
        self.run = run

        self.scenarios: Dict[str, Callable[[List[str]], None]] = {
            SESSION_ESTABLISHMENT_TEST: self.run_session_establishment_test,
            SESSION_TERMINATION_TEST: self.run_session_termination_test,
            SEND_DATA_TEST: self.run_send_data_test,
            SEND_COMPLEX_DATA_TEST: self.run_send_complex_data_test,
            RECEIVE_COMMAND_TEST: self.run_receive_command_test,
            PRIMARY_HOST_TEST: self.run_primary_host_test,
            MULTIPLE_BROKER_TEST: self.run_multiple_broker_test,
        }

    @property
    def state(self) -> EdgeTestState:
        return self.run.state

    # ------------------------------------------------------------------
    # TEST_CONTROL
    # ------------------------------------------------------------------
    def handle_test_control(self, message: str) -> None:
        try:
            command = parse_test_control(message)
        except CommandError as e:
            self.reporter.error(str(e))
            return

        if isinstance(command, NewTest):
            self.new_test(command)
        elif isinstance(command, EndTest):
            self.end_test()
        else:
            _LOGGER.debug(f"Ignoring test control message: {message!r}")

    def new_test(self, command: NewTest) -> None:
        if command.profile != EDGE_PROFILE:
            self.reporter.warn(f"Ignoring non-edge test: {command.profile}")
            return

        # A new run supersedes whatever the previous one left behind
        self.sessions.release()

        self.run.start(command.scenario, command.params)
        self.reporter.info(f"Starting test: {command.scenario}")

        handler = self.scenarios.get(command.scenario)
        if handler is None:
            self.reporter.error(f"Unknown test type: {command.scenario}")
            self.reporter.publish_result(RESULT_NOT_EXECUTED)
            return

        try:
            handler(command.params)
        except Exception as e:
            self.reporter.error(f"Exception in {command.scenario}: {e}")
            self.reporter.publish_result(RESULT_FAIL)

    def end_test(self) -> None:
        self.reporter.info("Test end requested")

        if self.run.running and self.run.name == SESSION_ESTABLISHMENT_TEST:
            self.reporter.publish_result(RESULT_PASS)

        self.sessions.release()
        self.run.reset()

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------
    def run_session_establishment_test(self, params: List[str]) -> None:
        if len(params) < 2:
            self.reporter.error(f"Missing parameters for {SESSION_ESTABLISHMENT_TEST}")
            self.reporter.publish_result(RESULT_NOT_EXECUTED)
            return

        group_id, edge_node_id = params[0], params[1]
        device_ids = [d for arg in params[2:] for d in arg.split(" ") if d]

        try:
            self.sessions.create(group_id, edge_node_id)
        except SessionError as e:
            self.reporter.error(str(e))
            self.reporter.publish_result(RESULT_FAIL)
            return

        self.run.group_id = group_id
        self.run.edge_node_id = edge_node_id
        self.run.device_ids = device_ids
        self.reporter.info("Edge Node session established successfully")

    def _not_implemented(self, name: str) -> None:
        self.reporter.warn(f"{name} not yet implemented")
        self.reporter.publish_result(RESULT_NOT_EXECUTED)

    def run_session_termination_test(self, params: List[str]) -> None:
        self._not_implemented(SESSION_TERMINATION_TEST)

    def run_send_data_test(self, params: List[str]) -> None:
        self._not_implemented(SEND_DATA_TEST)

    def run_send_complex_data_test(self, params: List[str]) -> None:
        self._not_implemented(SEND_COMPLEX_DATA_TEST)

    def run_receive_command_test(self, params: List[str]) -> None:
        self._not_implemented(RECEIVE_COMMAND_TEST)

    def run_primary_host_test(self, params: List[str]) -> None:
        self._not_implemented(PRIMARY_HOST_TEST)

    def run_multiple_broker_test(self, params: List[str]) -> None:
        self._not_implemented(MULTIPLE_BROKER_TEST)
