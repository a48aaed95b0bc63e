"""
SerialTransport
===============

A transport for serial ports based on `pyserial <https://pyserial.readthedocs.io>`_.
The port is opened with :code:`serial.serial_for_url`, so besides device names it also accepts
pyserial urls like :code:`loop://` (a software loopback) or :code:`socket://host:port`.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transport:
      uart0:
        type: serial
        port: /dev/ttyUSB0
        baudrate: 9600
        bytesize: 8
        parity: none
        stopbits: one
        flow_control: none
"""

import logging
from functools import cached_property
from typing import Optional

import serial

from serialtok.abc.transport import (
    Transport,
    TransportOpenError,
    TransportReadError,
    TransportWriteError,
)

logger = logging.getLogger("SerialTransport")

_PARITY = {
    "none": serial.PARITY_NONE,
    "odd": serial.PARITY_ODD,
    "even": serial.PARITY_EVEN,
}

_STOPBITS = {
    "one": serial.STOPBITS_ONE,
    "two": serial.STOPBITS_TWO,
}


class SerialTransport(Transport):
    """SerialTransport"""

    @cached_property
    def _serial(self) -> serial.SerialBase:
        try:
            port = serial.serial_for_url(self._config.port, do_not_open=True)
        except (serial.SerialException, ValueError) as error:
            raise TransportOpenError(self, str(error)) from error
        port.baudrate = self._config.baudrate
        port.bytesize = self._config.bytesize
        port.parity = _PARITY[self._config.parity]
        port.stopbits = _STOPBITS[self._config.stopbits]
        port.rtscts = self._config.flow_control == "hardware"
        port.xonxoff = self._config.flow_control == "software"
        port.timeout = self._config.read_timeout
        port.write_timeout = self._config.write_timeout
        return port

    @property
    def is_open(self) -> bool:
        if "_serial" not in self.__dict__:
            return False
        return bool(self._serial.is_open)

    def open(self) -> None:
        if self.is_open:
            return
        try:
            self._serial.open()
        except (serial.SerialException, ValueError, OSError) as error:
            raise TransportOpenError(self, str(error)) from error
        logger.info(
            "Opened %s at %s baud (%s%s%s, flow control: %s)",
            self._config.port,
            self._config.baudrate,
            self._config.bytesize,
            self._config.parity[0].upper(),
            1 if self._config.stopbits == "one" else 2,
            self._config.flow_control,
        )

    def read_one(self) -> Optional[int]:
        try:
            data = self._serial.read(1)
        except serial.PortNotOpenError as error:
            raise TransportReadError(self, str(error), fatal=True) from error
        except serial.SerialException as error:
            raise TransportReadError(self, str(error), fatal=self._is_disconnect(error)) from error
        except (OSError, TypeError) as error:
            # pyserial raises TypeError if the port is closed from another thread during a read
            raise TransportReadError(self, str(error), fatal=not self.is_open) from error
        if not data:
            return None
        return data[0]

    @staticmethod
    def _is_disconnect(error: serial.SerialException) -> bool:
        return "disconnected" in str(error) or "multiple access" in str(error)

    def cancel_read(self) -> None:
        if not self.is_open:
            return
        cancel_read = getattr(self._serial, "cancel_read", None)
        if cancel_read is not None:
            cancel_read()

    def write(self, data: bytes) -> int:
        try:
            written = self._serial.write(data)
            self._serial.flush()
        except (serial.SerialException, OSError) as error:
            raise TransportWriteError(self, str(error)) from error
        return written if written is not None else len(data)

    def close(self) -> None:
        if not self.is_open:
            return
        self._serial.close()
        logger.info("Closed %s", self._config.port)
