"""This module provides the abstract base class for all byte transports.
New transport types are created by implementing it and adding them to the
:code:`serialtok.registry.Registry`.

A transport only moves raw bytes. It does not interpret the framing parameters of its
configuration beyond handing them to the underlying device.
"""

from abc import abstractmethod
from typing import Optional

from attrs import define, field, validators

from serialtok.abc.component import Component
from serialtok.abc.exceptions import SerialtokException
from serialtok.util.defaults import DEFAULT_READ_TIMEOUT


class TransportError(SerialtokException):
    """Base class for Transport related exceptions."""

    def __init__(self, transport: "Transport", message: str) -> None:
        super().__init__(f"{self.__class__.__name__} in {transport.describe()}: {message}")


class TransportOpenError(TransportError):
    """The device could not be opened. Fatal to the construction of a source."""


class TransportWriteError(TransportError):
    """A blocking write failed. The caller may retry."""


class TransportReadError(TransportError):
    """A receive request failed.

    :code:`fatal` is set if the transport is not usable anymore and no further
    receive request should be issued.
    """

    def __init__(self, transport: "Transport", message: str, fatal: bool = False) -> None:
        super().__init__(transport, message)
        self.fatal = fatal


PARITIES = ("none", "odd", "even")
STOPBITS = ("one", "two")
FLOW_CONTROLS = ("none", "hardware", "software")


class Transport(Component):
    """Connect to a device that delivers and accepts raw bytes."""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Component.Config):
        """Transport Configurations"""

        port: str = field(validator=validators.instance_of(str))
        """Identifier of the device, e.g. :code:`/dev/ttyUSB0`, :code:`COM3` or
        a pyserial url like :code:`loop://`"""

        baudrate: int = field(
            validator=[validators.instance_of(int), validators.gt(0)], default=9600
        )
        """Line rate in baud. Defaults to :code:`9600`"""

        bytesize: int = field(validator=validators.in_((5, 6, 7, 8)), default=8)
        """Number of data bits. Defaults to :code:`8`"""

        parity: str = field(validator=validators.in_(PARITIES), default="none")
        """One of :code:`none`, :code:`odd`, :code:`even`. Defaults to :code:`none`"""

        stopbits: str = field(validator=validators.in_(STOPBITS), default="one")
        """One of :code:`one`, :code:`two`. Defaults to :code:`one`"""

        flow_control: str = field(validator=validators.in_(FLOW_CONTROLS), default="none")
        """One of :code:`none`, :code:`hardware` (RTS/CTS), :code:`software` (XON/XOFF).
        Defaults to :code:`none`"""

        read_timeout: float = field(
            validator=[validators.instance_of(float), validators.gt(0)],
            converter=float,
            default=DEFAULT_READ_TIMEOUT,
        )
        """Seconds a single receive request may wait for a byte before it completes without
        data. It bounds how long a shutdown waits for the receive thread."""

        write_timeout: Optional[float] = field(
            validator=validators.optional(
                validators.and_(
                    validators.instance_of((int, float)),
                    validators.not_(validators.instance_of(bool)),
                    validators.ge(0),
                )
            ),
            default=None,
        )
        """Seconds a blocking write may take. :code:`None` blocks until the write completes."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Return :code:`True` if the device is open"""

    @abstractmethod
    def open(self) -> None:
        """Open the device.

        Raises
        ------
        TransportOpenError
            if the device can not be opened or rejects the configuration
        """

    @abstractmethod
    def read_one(self) -> Optional[int]:
        """Issue exactly one single byte receive request and wait for its completion.

        Returns
        -------
        byte : int or None
            the received byte or :code:`None` if the request completed without data

        Raises
        ------
        TransportReadError
            if the request failed
        """

    def cancel_read(self) -> None:
        """Wake up a pending :code:`read_one`. Only used on shutdown."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write :code:`data` and block until the write completed.

        Returns
        -------
        written : int
            the number of bytes written

        Raises
        ------
        TransportWriteError
            if the write failed
        """

    @abstractmethod
    def close(self) -> None:
        """Close the device. Closing a closed transport does nothing."""

    def health(self) -> bool:
        return super().health() and self.is_open

    def setup(self):
        """Create the device handle and open it.

        Raises
        ------
        TransportOpenError
            if the device can not be opened
        """
        self._populate_cached_properties()
        self.open()

    def shut_down(self):
        self.close()
        super().shut_down()
