"""TCK control message parsing.

Control payloads are plain text, space delimited. Tokenizing splits on the
single space delimiter, strips each token and drops empty tokens, so runs of
spaces collapse. There is no quoting or escaping: an argument can never
contain a space.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .const import CFG_NEW_RESULT_LOG, CFG_UTC_WINDOW, CMD_END_TEST, CMD_NEW_TEST
from .exceptions import CommandError

DELIMITER = " "


@dataclass(frozen=True)
class NewTest:
    """NEW_TEST <profile> <scenario> [params...]"""
    profile: str
    scenario: str
    params: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EndTest:
    """END_TEST"""


@dataclass(frozen=True)
class UtcWindow:
    """UTCwindow <milliseconds>"""
    milliseconds: int


@dataclass(frozen=True)
class NewResultLog:
    """NEW_RESULT-LOG <args...>"""
    args: List[str]


TestControlCommand = Union[NewTest, EndTest]
ConfigCommand = UtcWindow


def tokenize(message: str) -> List[str]:
    tokens = []
    for token in message.split(DELIMITER):
        token = token.strip()
        if token:
            tokens.append(token)
    return tokens


def parse_test_control(message: str) -> Optional[TestControlCommand]:
    """Parse a TEST_CONTROL payload.

    Returns None for an empty message or an unknown leading word. Raises
    CommandError for a NEW_TEST without profile and scenario.
    """
    parts = tokenize(message)
    if not parts:
        return None

    command = parts[0]
    if command == CMD_NEW_TEST:
        if len(parts) < 3:
            raise CommandError("Invalid NEW_TEST command format")
        return NewTest(profile=parts[1], scenario=parts[2], params=parts[3:])

    if command == CMD_END_TEST:
        return EndTest()

    return None


def parse_config(message: str) -> Optional[ConfigCommand]:
    """Parse a CONFIG payload. Unknown keys return None."""
    parts = tokenize(message)
    if not parts or parts[0] != CFG_UTC_WINDOW:
        return None
    if len(parts) < 2:
        raise CommandError(f"Missing {CFG_UTC_WINDOW} value")

    value = parts[1]
    if not value.isdecimal():
        raise CommandError(f"Invalid {CFG_UTC_WINDOW} value: {value}")
    return UtcWindow(milliseconds=int(value))


def parse_result_config(message: str) -> Optional[NewResultLog]:
    parts = tokenize(message)
    if len(parts) < 2 or parts[0] != CFG_NEW_RESULT_LOG:
        return None
    return NewResultLog(args=parts[1:])
