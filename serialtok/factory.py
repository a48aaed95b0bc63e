"""Creates transports from their configuration definitions."""

from typing import Any

from serialtok.abc.transport import Transport
from serialtok.factory_error import (
    InvalidConfigSpecificationError,
    InvalidConfigurationError,
)
from serialtok.registry import Registry


class Factory:
    """Create transports for serialtok.

    A definition maps exactly one name to the options of a transport:

    >>> Factory.create({"uart0": {"type": "serial", "port": "/dev/ttyUSB0"}})
    """

    @classmethod
    def create(cls, definition: Any) -> Transport:
        """Create the transport of a definition. The transport is not opened.

        Raises
        ------
        InvalidConfigurationError
            if the definition is empty, not a mapping or holds invalid options
        FactoryError
            if the type is missing or unknown
        """
        name, options = cls._unpack(definition)
        transport_class = Registry.resolve(name, options)
        try:
            config = transport_class.Config(**options)
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(
                f'Invalid configuration for component "{name}": {error}'
            ) from error
        return transport_class(name, config)

    @staticmethod
    def _unpack(definition: Any) -> tuple[str, dict]:
        if definition is None or definition == {}:
            raise InvalidConfigurationError("The component definition is empty.")
        if not isinstance(definition, dict):
            raise InvalidConfigSpecificationError()
        if len(definition) > 1:
            raise InvalidConfigurationError(
                f"Found multiple component definitions ({', '.join(definition)}),"
                " but there must be exactly one."
            )
        ((name, options),) = definition.items()
        if options is None:
            raise InvalidConfigurationError(f'The definition of component "{name}" is empty.')
        if not isinstance(options, dict):
            raise InvalidConfigSpecificationError(name)
        return name, options
