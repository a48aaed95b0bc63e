"""This module contains the serialtok runner and is responsible for the polling loop."""

import logging
import sys
import time
from typing import Generator, Optional

from attrs import define, field

from serialtok.abc.component import Component
from serialtok.abc.transport import TransportOpenError
from serialtok.metrics.metrics import CounterMetric, GaugeMetric
from serialtok.source.async_byte_source import AsyncByteSource, SendResult
from serialtok.tokenizer.tokenizer import PollResult, Tokenizer
from serialtok.util.byte_channel import ByteChannel
from serialtok.util.configuration import Configuration
from serialtok.util.defaults import DEFAULT_POLL_INTERVAL, EXITCODES
from serialtok.util.helper import render_bytes

logger = logging.getLogger("Runner")


def format_token(token: bytes) -> str:
    """Format a received token for the console"""
    return f"token received: {len(token)}bytes : [ {render_bytes(token)} ]"


class Runner:
    """Provide the main entry point.

    The runner opens the configured transport, starts the background receive thread and
    polls the tokenizer on the calling thread.

    Example
    -------

    >>> configuration = Configuration.from_source("path/to/config.yml")
    >>> runner = Runner.get_runner(configuration)
    >>> runner.start()

    """

    _runner = None

    _configuration: Configuration

    _exit_received: bool = False

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Metrics for the serialtok Runner."""

        number_of_bytes_in_channel: GaugeMetric = field(
            factory=lambda: GaugeMetric(
                description="Current number of received bytes waiting to be tokenized",
                name="number_of_bytes_in_channel",
            )
        )
        """Current number of received bytes waiting to be tokenized"""

        number_of_polls: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of tokenizer polls",
                name="number_of_polls",
            )
        )
        """Number of tokenizer polls"""

    # Use this method to obtain a runner singleton for production
    @staticmethod
    def get_runner(configuration: Configuration) -> "Runner":
        """Create a Runner singleton."""
        if Runner._runner is None:
            Runner._runner = Runner(configuration)
        return Runner._runner

    def __init__(self, configuration: Configuration) -> None:
        self.exit_code = EXITCODES.SUCCESS
        self._configuration = configuration
        self.metrics = self.Metrics(
            labels={"component": "runner", "name": "runner", "description": ""}
        )
        self.channel: ByteChannel = ByteChannel()
        self.source: Optional[AsyncByteSource] = None
        self.tokenizer = Tokenizer(self.channel, configuration.tokenizer)

    def _start_source(self) -> AsyncByteSource:
        try:
            self.source = AsyncByteSource(
                self.channel, self._configuration.transport, self._configuration.source
            )
        except TransportOpenError as error:
            logger.error("%s", error)
            self.exit_code = EXITCODES.TRANSPORT_NOT_REACHABLE
            sys.exit(self.exit_code)
        return self.source

    def start(self, count: Optional[int] = None, interval: float = DEFAULT_POLL_INTERVAL) -> int:
        """Start receiving and print every token.

        This runs until :code:`stop` is called (SIGTERM, SIGINT), :code:`count` tokens were
        received or the source failed.

        Returns
        -------
        received: int
            the number of received tokens
        """
        received = 0
        with self._start_source():
            logger.info("Startup complete")
            for _ in self._keep_iterating():
                if self._exit_received:
                    break
                for token in self.tokenizer.tokens():
                    print(format_token(token))
                    received += 1
                    if count is not None and received >= count:
                        return received
                self._check_source()
                self._update_metrics()
                time.sleep(interval)
        return received

    def loopback(self, messages: int = 100, interval: float = DEFAULT_POLL_INTERVAL) -> int:
        """Send :code:`Hello World <n>;` messages and print the tokens that come back.

        Needs a loopback plug on the serial port or a :code:`loop://` port.

        Returns
        -------
        received: int
            the number of received tokens
        """
        received = 0
        output = bytearray()
        with self._start_source() as source:
            for loop_count in range(messages):
                if self._exit_received:
                    break
                data_message = f"Hello World {loop_count};"
                print(f"Sending: '{data_message}'")
                if source.send_sync(data_message) is SendResult.FAILED:
                    print("Sending failed.")
                time.sleep(interval)
                received += self._report(self.tokenizer.poll(output), output)
                self._check_source()
                self._update_metrics()
            received += self._report(self.tokenizer.poll(output), output)
        return received

    @staticmethod
    def _report(result: PollResult, output: bytearray) -> int:
        if result is PollResult.TOKEN_RETURNED:
            print(format_token(bytes(output)))
            return 1
        if result is PollResult.TOKEN_LENGTH_ERROR:
            print("Token Length error, reset serial processor.")
        return 0

    def _check_source(self) -> None:
        failure = self.source.next_failure()
        if failure is not None:
            logger.error("Source failed: %s. Exiting.", failure)
            self.exit_code = EXITCODES.SOURCE_ERROR
            self.source.stop()
            sys.exit(self.exit_code)

    def _update_metrics(self) -> None:
        self.metrics.number_of_polls += 1
        self.metrics.number_of_bytes_in_channel += self.channel.qsize()

    def stop(self) -> None:
        """Stop the serialtok runner. Is called by the signal handler
        in run_serialtok.py."""
        self._exit_received = True

    def _keep_iterating(self) -> Generator:
        """Indicates whether the runner should keep iterating."""

        while 1:  # pragma: no cover
            yield 1
