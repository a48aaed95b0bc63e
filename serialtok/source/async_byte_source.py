"""
AsyncByteSource
===============

Owns a transport and a background receive thread. The thread issues one single byte receive
request at a time and re-arms immediately after every completion, so exactly one request is
outstanding from construction until shutdown. Each received byte is pushed to the
:code:`ByteChannel` that is shared with the consumer.

Read errors
^^^^^^^^^^^

- A receive request that completes without data (read timeout) is re-armed immediately.
- A transient :code:`TransportReadError` is logged, counted and retried with an exponential
  backoff. After :code:`max_read_retries` consecutive errors it is treated as fatal.
- A fatal :code:`TransportReadError` stops the receive thread and marks the source as failed.
  The error is published on :code:`failures` and can be polled with :code:`next_failure`.
  No error is ever pushed into the byte channel.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    source:
      max_read_retries: 5
      retry_backoff: 0.05
      max_retry_backoff: 1.0
"""

import enum
import logging
import threading
from queue import Empty, SimpleQueue
from typing import Callable, Optional, Union

from attrs import define, field, validators

from serialtok.abc.component import Component
from serialtok.abc.transport import Transport, TransportReadError, TransportWriteError
from serialtok.factory import Factory
from serialtok.metrics.metrics import CounterMetric
from serialtok.util.byte_channel import ByteChannel
from serialtok.util.defaults import (
    DEFAULT_MAX_READ_RETRIES,
    DEFAULT_MAX_RETRY_BACKOFF,
    DEFAULT_RETRY_BACKOFF,
)

logger = logging.getLogger("AsyncByteSource")


class SendResult(enum.Enum):
    """Result of a blocking send"""

    OK = "ok"
    FAILED = "failed"


class ReceiveThread(threading.Thread):
    """Minimal thread wrapper that calls a single receive step until the stop flag is set.

    Parameters
    ----------
    function: Callable
        performs exactly one receive request and returns an exception if the loop has to stop
    stop_flag: threading.Event
        Event-Flag that stops the thread if it's set
    on_failure: Callable
        called with the exception that stopped the loop
    """

    def __init__(
        self,
        function: Callable[[], Optional[Exception]],
        stop_flag: threading.Event,
        on_failure: Callable[[Exception], None],
        name: str = "ReceiveThread",
    ):
        super().__init__(name=name, daemon=True)
        self.exception = None
        self.function = function
        self.stopped = stop_flag
        self.on_failure = on_failure

    def run(self):
        try:
            while not self.stopped.is_set():
                self.exception = self.function()
                if self.exception is not None:
                    self.on_failure(self.exception)
                    break
        except Exception as error:
            self.exception = error
            self.on_failure(error)
            raise


class AsyncByteSource(Component):
    """Receive bytes from a transport in the background and push them to a byte channel."""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Component.Config):
        """AsyncByteSource configuration"""

        type: str = field(validator=validators.instance_of(str), default="async_byte_source")
        """Type of the component"""

        max_read_retries: int = field(
            validator=[validators.instance_of(int), validators.ge(0)],
            default=DEFAULT_MAX_READ_RETRIES,
        )
        """Number of consecutive transient read errors that are retried before the source
        is marked as failed. Defaults to :code:`5`"""

        retry_backoff: float = field(
            validator=[validators.instance_of(float), validators.ge(0)],
            converter=float,
            default=DEFAULT_RETRY_BACKOFF,
        )
        """Initial backoff in seconds after a transient read error. It doubles with every
        consecutive error. Defaults to :code:`0.05`"""

        max_retry_backoff: float = field(
            validator=[validators.instance_of(float), validators.ge(0)],
            converter=float,
            default=DEFAULT_MAX_RETRY_BACKOFF,
        )
        """Upper bound of the backoff in seconds. Defaults to :code:`1.0`"""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about the byte source"""

        number_of_received_bytes: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of bytes received and pushed to the byte channel",
                name="number_of_received_bytes",
            )
        )
        """Number of bytes received and pushed to the byte channel"""

        number_of_sent_bytes: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of bytes written to the transport",
                name="number_of_sent_bytes",
            )
        )
        """Number of bytes written to the transport"""

        number_of_read_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of failed receive requests",
                name="number_of_read_errors",
            )
        )
        """Number of failed receive requests"""

        number_of_write_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of failed blocking writes",
                name="number_of_write_errors",
            )
        )
        """Number of failed blocking writes"""

    # instance attributes
    channel: ByteChannel
    transport: Transport
    stop_flag: threading.Event
    failures: SimpleQueue
    rthread: ReceiveThread

    def __init__(
        self,
        channel: ByteChannel,
        transport: Union[Transport, dict],
        configuration: "AsyncByteSource.Config" = None,
        name: str = "source",
    ):
        """Open the transport and start receiving.

        Parameters
        ----------
        channel: ByteChannel
            the channel every received byte is pushed to
        transport: Transport or dict
            a transport instance or a transport definition like
            :code:`{"uart0": {"type": "serial", "port": "/dev/ttyUSB0"}}`
        configuration: AsyncByteSource.Config
            retry configuration, defaults are used if omitted
        name: str
            name of the source used in logs and metrics

        Raises
        ------
        TransportOpenError
            if the transport could not be opened. No thread is started in this case.
        """
        if configuration is None:
            configuration = AsyncByteSource.Config()
        super().__init__(name, configuration)
        if not isinstance(transport, Transport):
            transport = Factory.create(transport)
        self.channel = channel
        self.transport = transport
        self.stop_flag = threading.Event()
        self.failures = SimpleQueue()
        self._write_lock = threading.Lock()
        self._consecutive_errors = 0
        self._failed = False
        self.transport.setup()
        self._populate_cached_properties()
        self.rthread = ReceiveThread(
            self._receive_once,
            self.stop_flag,
            self._fail,
            name=f"ReceiveThread-{name}",
        )
        self.rthread.start()
        logger.info("%s started receiving from %s", self.describe(), self.transport.describe())

    @property
    def failed(self) -> bool:
        """:code:`True` if the receive loop stopped because of an error"""
        return self._failed

    @property
    def is_running(self) -> bool:
        """:code:`True` while the receive thread is alive"""
        return self.rthread.is_alive()

    def _receive_once(self) -> Optional[Exception]:
        """Issue one receive request and deliver its byte.
        Returns the error that stops the receive loop, if any."""
        try:
            byte = self.transport.read_one()
        except TransportReadError as error:
            return self._handle_read_error(error)
        if self.stop_flag.is_set():
            # abandoned on shutdown
            return None
        self._consecutive_errors = 0
        if byte is None:
            return None
        self.channel.push(byte)
        self.metrics.number_of_received_bytes += 1
        return None

    def _handle_read_error(self, error: TransportReadError) -> Optional[Exception]:
        if self.stop_flag.is_set():
            logger.debug("Ignoring read error during shutdown: %s", error)
            return None
        self.metrics.number_of_read_errors += 1
        self._consecutive_errors += 1
        if error.fatal or self._consecutive_errors > self._config.max_read_retries:
            return error
        backoff = min(
            self._config.retry_backoff * 2 ** (self._consecutive_errors - 1),
            self._config.max_retry_backoff,
        )
        logger.warning(
            "%s, retrying in %.3fs (%s/%s)",
            error,
            backoff,
            self._consecutive_errors,
            self._config.max_read_retries,
        )
        self.stop_flag.wait(backoff)
        return None

    def _fail(self, error: Exception) -> None:
        self._failed = True
        self.failures.put(error)
        logger.error("%s stopped receiving: %s", self.describe(), error)

    def next_failure(self) -> Optional[Exception]:
        """Return the error that stopped the receive loop without blocking, or :code:`None`"""
        try:
            return self.failures.get_nowait()
        except Empty:
            return None

    def send_sync(self, data: Union[bytes, bytearray, str]) -> SendResult:
        """Write :code:`data` to the transport and block until the write completed.

        Concurrent callers are serialized. :code:`str` is encoded as utf-8.

        Returns
        -------
        SendResult
            :code:`SendResult.OK` or :code:`SendResult.FAILED`
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._write_lock:
            try:
                written = self.transport.write(bytes(data))
            except TransportWriteError as error:
                self.metrics.number_of_write_errors += 1
                logger.warning("%s", error)
                return SendResult.FAILED
        self.metrics.number_of_sent_bytes += written
        return SendResult.OK

    def health(self) -> bool:
        return (
            super().health()
            and not self._failed
            and self.is_running
            and self.transport.health()
        )

    def stop(self) -> None:
        """Stop the receive thread, wait until it exited and close the transport.

        A receive request in flight is abandoned without delivering its byte.
        Calling stop more than once does nothing.
        """
        if self.stop_flag.is_set() and not self.rthread.is_alive() and not self.transport.is_open:
            return
        self.stop_flag.set()
        self.transport.cancel_read()
        self.rthread.join()
        self.transport.shut_down()
        logger.info("%s stopped", self.describe())

    def shut_down(self):
        self.stop()
        super().shut_down()

    def __enter__(self) -> "AsyncByteSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
