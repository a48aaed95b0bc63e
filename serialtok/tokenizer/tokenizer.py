"""
Tokenizer
=========

Reassembles the bytes of a :code:`ByteChannel` into delimiter terminated tokens.
A poll never blocks: it drains whatever is currently available and returns one of

- :code:`PollResult.TOKEN_RETURNED`: a delimiter was popped, the token (delimiter excluded)
  was copied into the output buffer
- :code:`PollResult.NO_TOKEN_AVAILABLE`: the channel is empty, the incomplete token is kept
  for the next poll
- :code:`PollResult.TOKEN_LENGTH_ERROR`: the token grew beyond :code:`max_token_length`, the
  incomplete token was dropped and tokenizing continues with the next byte

The cross poll state lives in an explicit :code:`TokenizerState` which is passed to
:code:`poll_token`. The :code:`Tokenizer` component owns one such state.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    tokenizer:
      delimiters: ";"
      max_token_length: 32
"""

import enum
import logging
from typing import Iterable, Iterator, Union

from attrs import define, field, validators

from serialtok.abc.component import Component
from serialtok.metrics.metrics import CounterMetric, HistogramMetric, Metric
from serialtok.util.byte_channel import ByteChannel
from serialtok.util.defaults import DEFAULT_DELIMITERS, DEFAULT_MAX_TOKEN_LENGTH
from serialtok.util.helper import render_bytes, to_byte_set

logger = logging.getLogger("Tokenizer")

Delimiters = Union[bytes, bytearray, str, Iterable[int]]


class PollResult(enum.Enum):
    """Outcome of a single poll"""

    TOKEN_RETURNED = "token_returned"
    NO_TOKEN_AVAILABLE = "no_token_available"
    TOKEN_LENGTH_ERROR = "token_length_error"


@define(kw_only=True)
class TokenizerState:
    """State of the token that is currently assembled.

    Changing :code:`delimiters` or :code:`max_token_length` through the setters drops the
    incomplete token.
    """

    delimiters: frozenset = field(
        converter=to_byte_set, default=frozenset(DEFAULT_DELIMITERS)
    )
    """Byte values that terminate a token"""

    max_token_length: int = field(
        validator=[validators.instance_of(int), validators.ge(1)],
        default=DEFAULT_MAX_TOKEN_LENGTH,
    )
    """Maximum number of bytes in a token, the delimiter excluded"""

    working_buffer: bytearray = field(factory=bytearray)
    """Bytes of the incomplete token"""

    byte_count: int = field(default=0)
    """Number of bytes accumulated in the incomplete token"""

    def set_delimiters(self, delimiters: Delimiters) -> None:
        """Replace the delimiter set and drop the incomplete token"""
        self.delimiters = to_byte_set(delimiters)
        self.reset()

    def set_max_token_length(self, max_token_length: int) -> None:
        """Replace the maximum token length and drop the incomplete token"""
        if not isinstance(max_token_length, int) or max_token_length < 1:
            raise ValueError(f"max_token_length must be a positive int, got {max_token_length!r}")
        self.max_token_length = max_token_length
        self.reset()

    def reset(self) -> None:
        """Drop the incomplete token"""
        self.working_buffer.clear()
        self.byte_count = 0


def poll_token(channel: ByteChannel, state: TokenizerState, output: bytearray) -> PollResult:
    """Drain :code:`channel` until a token is complete, the channel is empty or the
    token grew too long.

    Parameters
    ----------
    channel: ByteChannel
        the channel to pop bytes from, never blocks
    state: TokenizerState
        the state of the incomplete token, updated in place
    output: bytearray
        cleared on every call, holds the token if :code:`PollResult.TOKEN_RETURNED` is returned

    Returns
    -------
    PollResult
    """
    output.clear()
    while (byte := channel.try_pop()) is not None:
        if byte in state.delimiters:
            output.extend(state.working_buffer)
            state.reset()
            return PollResult.TOKEN_RETURNED
        if state.byte_count + 1 > state.max_token_length:
            state.reset()
            return PollResult.TOKEN_LENGTH_ERROR
        state.working_buffer.append(byte)
        state.byte_count += 1
    return PollResult.NO_TOKEN_AVAILABLE


class Tokenizer(Component):
    """Poll a byte channel for delimiter terminated tokens."""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Component.Config):
        """Tokenizer configuration"""

        type: str = field(validator=validators.instance_of(str), default="tokenizer")
        """Type of the component"""

        delimiters: frozenset = field(
            converter=to_byte_set, default=frozenset(DEFAULT_DELIMITERS)
        )
        """Characters or byte values that terminate a token. A string like :code:`";\\n"`
        is taken byte by byte. Defaults to a single space."""

        max_token_length: int = field(
            validator=[validators.instance_of(int), validators.ge(1)],
            default=DEFAULT_MAX_TOKEN_LENGTH,
        )
        """Maximum number of bytes in a token. Defaults to :code:`128`"""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about the tokenizer"""

        number_of_tokens: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of complete tokens returned",
                name="number_of_tokens",
            )
        )
        """Number of complete tokens returned"""

        number_of_token_length_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of tokens dropped because they exceeded the maximum length",
                name="number_of_token_length_errors",
            )
        )
        """Number of tokens dropped because they exceeded the maximum length"""

        processing_time_per_poll: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds that it took to poll the channel",
                name="processing_time_per_poll",
            )
        )
        """Time in seconds that it took to poll the channel"""

    # instance attributes
    channel: ByteChannel
    state: TokenizerState

    def __init__(
        self,
        channel: ByteChannel,
        configuration: "Tokenizer.Config" = None,
        name: str = "tokenizer",
    ):
        if configuration is None:
            configuration = Tokenizer.Config()
        super().__init__(name, configuration)
        self.channel = channel
        self.state = TokenizerState(
            delimiters=configuration.delimiters,
            max_token_length=configuration.max_token_length,
        )

    @property
    def delimiters(self) -> frozenset:
        """The byte values that currently terminate a token"""
        return self.state.delimiters

    @property
    def max_token_length(self) -> int:
        """The current maximum token length"""
        return self.state.max_token_length

    def set_delimiters(self, delimiters: Delimiters) -> None:
        """Replace the delimiters. The incomplete token is dropped."""
        self.state.set_delimiters(delimiters)
        logger.debug(
            "%s delimiters set to [%s]", self.describe(), render_bytes(sorted(self.delimiters))
        )

    def set_max_token_length(self, max_token_length: int) -> None:
        """Replace the maximum token length. The incomplete token is dropped."""
        self.state.set_max_token_length(max_token_length)
        logger.debug("%s max token length set to %s", self.describe(), max_token_length)

    def reset(self) -> None:
        """Drop the incomplete token"""
        self.state.reset()

    @Metric.measure_time()
    def poll(self, output: bytearray) -> PollResult:
        """Poll the channel once, see :code:`poll_token`"""
        result = poll_token(self.channel, self.state, output)
        if result is PollResult.TOKEN_RETURNED:
            self.metrics.number_of_tokens += 1
        elif result is PollResult.TOKEN_LENGTH_ERROR:
            self.metrics.number_of_token_length_errors += 1
            logger.warning(
                "%s: token exceeded %s bytes, dropped incomplete token",
                self.describe(),
                self.max_token_length,
            )
        return result

    def tokens(self) -> Iterator[bytes]:
        """Yield every token that can be completed from the bytes available right now.
        Token length errors are counted and skipped."""
        output = bytearray()
        while (result := self.poll(output)) is not PollResult.NO_TOKEN_AVAILABLE:
            if result is PollResult.TOKEN_RETURNED:
                yield bytes(output)
