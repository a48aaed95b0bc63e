"""
DummyTransport
==============

An in-memory transport that delivers the chunks it was initialized with, byte by byte.

If a chunk is an exception class or instance, it is raised by the receive request that reaches
it instead of delivering a byte. :code:`TransportReadError` classes are instantiated with the
transport itself. With :code:`loopback` enabled everything written to the transport is delivered
again like with a loopback plug.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transport:
      mydummy:
        type: dummy
        port: dummy
        chunks: ["Hello;", "World;"]
        loopback: true
"""

import threading
from collections import deque
from typing import List, Optional, Union

from attrs import define, field, validators

from serialtok.abc.transport import (
    Transport,
    TransportError,
    TransportOpenError,
    TransportWriteError,
)


class DummyTransport(Transport):
    """DummyTransport"""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Transport.Config):
        """DummyTransport specific configuration"""

        port: str = field(validator=validators.instance_of(str), default="dummy")
        """Identifier, only used for logging. Defaults to :code:`dummy`"""

        chunks: List[Union[str, bytes, type, Exception]] = field(
            validator=validators.instance_of(list), factory=list
        )
        """Data that is delivered in order. :code:`str` chunks are encoded as latin-1."""

        loopback: bool = field(validator=validators.instance_of(bool), default=True)
        """If set to :code:`true`, written bytes are delivered again. Default: :code:`True`"""

        fail_open: bool = field(validator=validators.instance_of(bool), default=False)
        """If set to :code:`true`, :code:`open` raises a :code:`TransportOpenError`"""

        fail_write: bool = field(validator=validators.instance_of(bool), default=False)
        """If set to :code:`true`, every write raises a :code:`TransportWriteError`"""

    __slots__ = [
        "_pending",
        "_condition",
        "_open",
        "_cancelled",
        "written",
        "read_requests",
        "in_flight",
        "max_in_flight",
    ]

    _pending: deque
    _condition: threading.Condition
    _open: bool
    _cancelled: bool
    written: bytearray
    read_requests: int
    in_flight: int
    max_in_flight: int

    def __init__(self, name: str, configuration: "DummyTransport.Config"):
        super().__init__(name, configuration)
        self._pending = deque()
        for chunk in configuration.chunks:
            if isinstance(chunk, str):
                chunk = chunk.encode("latin-1")
            if isinstance(chunk, (bytes, bytearray)):
                self._pending.extend(chunk)
            else:
                self._pending.append(chunk)
        self._condition = threading.Condition()
        self._open = False
        self._cancelled = False
        self.written = bytearray()
        self.read_requests = 0
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._config.fail_open:
            raise TransportOpenError(self, f"could not open port {self._config.port}")
        self._open = True

    def feed(self, data: Union[bytes, str, type, Exception]) -> None:
        """Make :code:`data` available to the receive requests, as if it arrived on the line."""
        if isinstance(data, str):
            data = data.encode("latin-1")
        with self._condition:
            if isinstance(data, (bytes, bytearray)):
                self._pending.extend(data)
            else:
                self._pending.append(data)
            self._condition.notify_all()

    def read_one(self) -> Optional[int]:
        with self._condition:
            self.read_requests += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                item = self._next_item()
            finally:
                self.in_flight -= 1
        if item is None or isinstance(item, int):
            return item
        if isinstance(item, type) and issubclass(item, TransportError):
            raise item(self, "dummy read error")
        if isinstance(item, type):
            raise item()
        raise item

    def _next_item(self):
        """Wait for the next pending item. Must be called with the condition held."""
        if not self._pending and not self._cancelled:
            self._condition.wait(self._config.read_timeout)
        self._cancelled = False
        if not self._pending:
            return None
        return self._pending.popleft()

    def cancel_read(self) -> None:
        with self._condition:
            self._cancelled = True
            self._condition.notify_all()

    def write(self, data: bytes) -> int:
        if self._config.fail_write or not self._open:
            raise TransportWriteError(self, "dummy write error")
        self.written.extend(data)
        if self._config.loopback:
            self.feed(bytes(data))
        return len(data)

    def close(self) -> None:
        self._open = False
