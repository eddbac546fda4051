"""Log lines, verdicts and console replies sent back to the TCK console."""

import logging

from .const import (
    CONSOLE_REPLY_TOPIC,
    LEVEL_DEBUG,
    LEVEL_ERROR,
    LEVEL_INFO,
    LEVEL_WARN,
    LOG_TOPIC,
    QOS_AT_LEAST_ONCE,
    QOS_AT_MOST_ONCE,
    RESULT_FAIL,
    RESULT_TOPIC,
)
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)

_LEVELS = {
    LEVEL_DEBUG: logging.DEBUG,
    LEVEL_INFO: logging.INFO,
    LEVEL_WARN: logging.WARNING,
    LEVEL_ERROR: logging.ERROR,
}


class Reporter:
    """Mirrors log lines to the TCK LOG topic and publishes verdicts.

    ``channel`` is anything with ``publish(topic, payload, qos)`` that raises
    TransportError when it cannot send.
    """

    def __init__(self, channel, run) -> None:
        self.channel = channel
        self.run = run

    def log(self, level: str, message: str) -> None:
        line = f"[{level}] {message}"
        _LOGGER.log(_LEVELS.get(level, logging.INFO), message)
        try:
            self.channel.publish(LOG_TOPIC, line, QOS_AT_MOST_ONCE)
        except TransportError:
            pass  # not connected
        except Exception as e:
            _LOGGER.debug(f"LOG publish failed: {e}")

    def info(self, message: str) -> None:
        self.log(LEVEL_INFO, message)

    def warn(self, message: str) -> None:
        self.log(LEVEL_WARN, message)

    def error(self, message: str) -> None:
        self.log(LEVEL_ERROR, message)

    def publish_result(self, result: str) -> None:
        """Publish a verdict and close the current run."""
        _LOGGER.info(f"Result: {result}")
        try:
            self.channel.publish(RESULT_TOPIC, result, QOS_AT_LEAST_ONCE)
        except TransportError as e:
            _LOGGER.error(f"Failed to publish result '{result}': {e}")

        if result == RESULT_FAIL:
            self.run.fail()
        else:
            self.run.complete()

    def publish_console_reply(self, reply: str) -> None:
        _LOGGER.info(f"Console reply: {reply}")
        try:
            self.channel.publish(CONSOLE_REPLY_TOPIC, reply, QOS_AT_LEAST_ONCE)
        except TransportError as e:
            _LOGGER.error(f"Failed to publish console reply: {e}")
