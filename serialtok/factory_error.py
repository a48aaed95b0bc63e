"""Errors raised while building components from configuration."""

from serialtok.abc.exceptions import SerialtokException


class FactoryError(SerialtokException):
    """A component could not be built from its definition."""


class InvalidConfigurationError(FactoryError):
    """A configuration file or component definition is not valid."""


class InvalidConfigSpecificationError(InvalidConfigurationError):
    """A definition is not a mapping."""

    def __init__(self, component=None):
        target = f' for component "{component}"' if component else ""
        super().__init__(f"The configuration{target} must be specified as an object.")


class NoTypeSpecifiedError(InvalidConfigurationError):
    """A definition has no :code:`type`."""

    def __init__(self, name=None):
        suffix = f" for element with name '{name}'" if name else ""
        super().__init__(f"The type specification is missing{suffix}")


class UnknownComponentTypeError(FactoryError):
    """No component is registered for the :code:`type` of a definition."""

    def __init__(self, component_type):
        super().__init__(f"Unknown type '{component_type}'")
