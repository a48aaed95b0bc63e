"""Transport registry.

Maps the :code:`type` of a transport definition to its class. New transports are made known
by importing them here and adding them to :code:`Registry.mapping`.
"""

from typing import Any, Dict, Mapping, Type

from serialtok.abc.transport import Transport
from serialtok.factory_error import NoTypeSpecifiedError, UnknownComponentTypeError
from serialtok.transport.dummy.transport import DummyTransport
from serialtok.transport.serial.transport import SerialTransport


class Registry:
    """Transport registry"""

    mapping: Dict[str, Type[Transport]] = {
        "serial": SerialTransport,
        "dummy": DummyTransport,
    }

    @classmethod
    def get_class(cls, component_type: str) -> Type[Transport] | None:
        """return the transport class registered for :code:`component_type` or :code:`None`"""
        return cls.mapping.get(component_type)

    @classmethod
    def resolve(cls, name: str, definition: Mapping[str, Any]) -> Type[Transport]:
        """Look up the class for a transport definition.

        Parameters
        ----------
        name : str
            name of the transport, used in error messages
        definition : Mapping[str, Any]
            the transport options including :code:`type`

        Raises
        ------
        NoTypeSpecifiedError
            if the definition has no :code:`type`
        UnknownComponentTypeError
            if no transport is registered for the type
        """
        if "type" not in definition:
            raise NoTypeSpecifiedError(name)
        transport_class = cls.get_class(definition["type"])
        if transport_class is None:
            raise UnknownComponentTypeError(definition["type"])
        return transport_class
