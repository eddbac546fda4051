"""Tests for the simulated TCK console helpers (no broker needed)."""

from types import SimpleNamespace

import tck_console
from tck_console import ReplyCollector, build_new_test, build_utc_window

from tck_edge.commands import NewTest, UtcWindow, parse_config, parse_test_control


class TestBuilders:
    def test_new_test_round_trips_through_parser(self) -> None:
        message = build_new_test("SessionEstablishmentTest", ["G1", "E1", "D1"])

        assert message == "NEW_TEST edge SessionEstablishmentTest G1 E1 D1"
        assert parse_test_control(message) == NewTest(
            "edge", "SessionEstablishmentTest", ["G1", "E1", "D1"])

    def test_new_test_other_profile(self) -> None:
        assert build_new_test("SendDataTest", [], profile="host") == "NEW_TEST host SendDataTest"

    def test_utc_window(self) -> None:
        assert parse_config(build_utc_window(2000)) == UtcWindow(2000)


class TestReplyCollector:
    def test_collects_results(self) -> None:
        collector = ReplyCollector(echo=False)
        collector.add("SPARKPLUG_TCK/LOG", "[INFO] Starting test: SendDataTest")
        collector.add("SPARKPLUG_TCK/RESULT", "OVERALL: NOT EXECUTED")

        assert collector.results() == ["OVERALL: NOT EXECUTED"]
        assert collector.wait_for_result(0.1) == "OVERALL: NOT EXECUTED"

    def test_wait_times_out_without_result(self) -> None:
        collector = ReplyCollector(echo=False)
        collector.add("SPARKPLUG_TCK/LOG", "[INFO] Test end requested")

        assert collector.wait_for_result(0.05) is None

    def test_clear_result(self) -> None:
        collector = ReplyCollector(echo=False)
        collector.add("SPARKPLUG_TCK/RESULT", "OVERALL: FAIL")
        collector.clear_result()

        assert collector.wait_for_result(0.05) is None

    def test_paho_callback(self, capsys) -> None:
        collector = ReplyCollector()
        msg = SimpleNamespace(topic="SPARKPLUG_TCK/RESULT", payload=b"OVERALL: PASS")
        collector.on_message(None, None, msg)

        assert collector.results() == ["OVERALL: PASS"]
        assert "[RESULT] OVERALL: PASS" in capsys.readouterr().out


class TestMain:
    def test_no_command_prints_help(self, capsys) -> None:
        assert tck_console.main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()
