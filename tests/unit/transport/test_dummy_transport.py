# pylint: disable=missing-docstring
# pylint: disable=protected-access
import threading

import pytest

from serialtok.abc.transport import (
    TransportOpenError,
    TransportReadError,
    TransportWriteError,
)
from serialtok.factory import Factory
from serialtok.transport.dummy.transport import DummyTransport
from tests.unit.component.base import BaseComponentTestCase


class TestDummyTransport(BaseComponentTestCase):
    CONFIG = {"type": "dummy", "read_timeout": 0.01, "chunks": ["AB", b"\x00"]}

    expected_description = "DummyTransport (test_dummy)"

    def create_object(self) -> DummyTransport:
        return Factory.create({"test_dummy": dict(self.CONFIG)})

    def test_is_closed_before_setup(self):
        assert not self.object.is_open
        assert not self.object.health()

    def test_setup_opens(self):
        self.object.setup()
        assert self.object.is_open
        assert self.object.health()

    def test_fail_open_raises_transport_open_error(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"fail_open": True}})
        with pytest.raises(TransportOpenError, match=r"DummyTransport \(test_dummy\)"):
            transport.setup()
        assert not transport.is_open

    def test_read_one_delivers_chunks_byte_by_byte(self):
        self.object.setup()
        assert [self.object.read_one() for _ in range(4)] == [0x41, 0x42, 0x00, None]
        assert self.object.read_requests == 4
        assert self.object.max_in_flight == 1

    def test_read_one_raises_transport_read_error_class_chunks(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"chunks": [TransportReadError]}})
        transport.setup()
        with pytest.raises(TransportReadError, match="dummy read error") as error:
            transport.read_one()
        assert not error.value.fatal

    def test_read_one_raises_exception_instances(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"chunks": []}})
        transport.setup()
        error = TransportReadError(transport, "gone", fatal=True)
        transport.feed(error)
        with pytest.raises(TransportReadError) as raised:
            transport.read_one()
        assert raised.value is error

    def test_feed_wakes_up_waiting_read(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"chunks": [], "read_timeout": 5}})
        transport.setup()
        threading.Timer(0.05, transport.feed, args=("x",)).start()
        assert transport.read_one() == ord("x")

    def test_cancel_read_wakes_up_waiting_read(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"chunks": [], "read_timeout": 5}})
        transport.setup()
        threading.Timer(0.05, transport.cancel_read).start()
        assert transport.read_one() is None

    def test_write_loops_back(self):
        self.object.setup()
        assert self.object.write(b"xy") == 2
        assert self.object.written == b"xy"
        assert [self.object.read_one() for _ in range(5)] == [0x41, 0x42, 0x00, 0x78, 0x79]

    def test_write_without_loopback(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"loopback": False, "chunks": []}})
        transport.setup()
        transport.write(b"xy")
        assert transport.written == b"xy"
        assert transport.read_one() is None

    def test_write_on_closed_transport_raises(self):
        with pytest.raises(TransportWriteError):
            self.object.write(b"x")

    def test_fail_write_raises(self):
        transport = Factory.create({"test_dummy": self.CONFIG | {"fail_write": True}})
        transport.setup()
        with pytest.raises(TransportWriteError, match="dummy write error"):
            transport.write(b"x")

    def test_shut_down_closes_and_is_idempotent(self):
        self.object.setup()
        self.object.shut_down()
        self.object.shut_down()
        assert not self.object.is_open
