"""
Configuration is done via a YAML or JSON file.
serialtok reads :code:`/etc/serialtok/serialtok.yml` if no configuration file is passed.

..  code-block:: bash
    :caption: Valid Run Examples

    serialtok run /different/path/file.yml
    serialtok loopback examples/loopback.yml

Configuration File Structure
----------------------------

..  code-block:: yaml
    :caption: Example of a complete configuration file

    version: config-1.0
    logger:
        level: INFO
    transport:
        uart0:
            type: serial
            port: /dev/ttyUSB0
            baudrate: 9600
            bytesize: 8
            parity: none
            stopbits: one
            flow_control: none
    tokenizer:
        delimiters: ";"
        max_token_length: 32
    source:
        max_read_retries: 5
        retry_backoff: 0.05
    metrics:
        enabled: false
        port: 8000
"""

import logging
from copy import deepcopy
from io import StringIO
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Callable, List, Optional

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from serialtok.factory import Factory
from serialtok.factory_error import FactoryError, InvalidConfigurationError
from serialtok.source.async_byte_source import AsyncByteSource
from serialtok.tokenizer.tokenizer import Tokenizer
from serialtok.util.defaults import (
    DEFAULT_CONFIG_LOCATION,
    DEFAULT_LOG_CONFIG,
    DEFAULT_LOG_DATE_FORMAT,
    DEFAULT_LOG_FORMAT,
)

logger = logging.getLogger("Config")

yaml = YAML(pure=True)

LOG_LEVELS = ("NOTSET", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class InvalidConfigurationErrors(InvalidConfigurationError):
    """Collects every problem found while verifying a configuration."""

    errors: List[InvalidConfigurationError]

    def __init__(self, errors: List[Exception]) -> None:
        converted = (
            error
            if isinstance(error, InvalidConfigurationError)
            else InvalidConfigurationError(*error.args)
            for error in errors
        )
        self.errors = list(dict.fromkeys(converted))
        super().__init__("\n".join(str(error) for error in self.errors))


class RequiredConfigurationKeyMissingError(InvalidConfigurationError):
    """Raise if required option is missing in configuration."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required option is missing: {key}")


@define(kw_only=True, frozen=True)
class MetricsConfig:
    """The :code:`metrics` section"""

    enabled: bool = field(validator=validators.instance_of(bool), default=False)
    port: int = field(validator=validators.instance_of(int), default=8000)


@define(kw_only=True)
class LoggerConfig:
    """The :code:`logger` section.

    It is turned into a :code:`logging.config.dictConfig` based on
    :code:`serialtok.util.defaults.DEFAULT_LOG_CONFIG`.
    """

    level: str = field(default="INFO", validator=validators.in_(LOG_LEVELS))
    """Level of the root logger. Defaults to :code:`INFO`."""

    format: str = field(default=DEFAULT_LOG_FORMAT, validator=validators.instance_of(str))
    """Format of a log line, see :code:`serialtok.util.logging.SerialtokFormatter`."""

    datefmt: str = field(default=DEFAULT_LOG_DATE_FORMAT, validator=validators.instance_of(str))
    """Format of :code:`%(asctime)s`. Defaults to :code:`%Y-%m-%d %H:%M:%S`."""

    loggers: dict = field(
        factory=dict,
        validator=validators.deep_mapping(
            key_validator=validators.instance_of(str),
            value_validator=validators.instance_of(dict),
        ),
    )
    """Levels of single loggers. Every module logs to a logger named after its class, e.g.
    :code:`AsyncByteSource` or :code:`Tokenizer`. Only :code:`level` is taken into account.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: WARNING
            loggers:
                "Tokenizer": {"level": "DEBUG"}
    """

    def as_dict_config(self) -> dict:
        """Return the configuration in the :code:`logging.config.dictConfig` schema"""
        log_config = deepcopy(DEFAULT_LOG_CONFIG)
        log_config["formatters"]["serialtok"].update(format=self.format, datefmt=self.datefmt)
        loggers = log_config["loggers"]
        loggers["root"]["level"] = self.level
        for name, options in self.loggers.items():
            if "level" in options:
                loggers.setdefault(name, {})["level"] = options["level"]
        return log_config

    def setup_logging(self) -> None:
        """Apply the configuration to the logging module"""
        dictConfig(self.as_dict_config())


def _converter(config_class: type) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:
        return value if isinstance(value, config_class) else config_class(**value)

    return convert


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    version: str = field(
        validator=validators.instance_of(str), converter=str, default="unset", eq=True
    )
    """Optional version of the configuration file. It is printed by
    :code:`serialtok run --version config.yml`. Defaults to :code:`unset`."""
    transport: dict = field(validator=validators.instance_of(dict), factory=dict, eq=False)
    """Exactly one transport definition, see :code:`serialtok.abc.transport.Transport.Config`.
    The key is the name of the transport, the value holds its :code:`type` and options."""
    tokenizer: Tokenizer.Config = field(
        converter=_converter(Tokenizer.Config), factory=Tokenizer.Config, eq=False
    )
    """Delimiters and maximum token length, see :code:`serialtok.tokenizer.tokenizer`."""
    source: AsyncByteSource.Config = field(
        converter=_converter(AsyncByteSource.Config), factory=AsyncByteSource.Config, eq=False
    )
    """Read error retry policy, see :code:`serialtok.source.async_byte_source`."""
    logger: LoggerConfig = field(
        converter=_converter(LoggerConfig), factory=LoggerConfig, eq=False
    )
    """Logger configuration, see :code:`LoggerConfig`."""
    metrics: MetricsConfig = field(
        converter=_converter(MetricsConfig), factory=MetricsConfig, eq=False
    )
    """Metrics configuration, see :code:`serialtok.metrics.metrics`."""
    config_path: Optional[str] = field(default=None, eq=False)
    """Path of the file this configuration was read from."""

    @classmethod
    def from_source(cls, config_path: str | None = None) -> "Configuration":
        """Create configuration from a yaml or json file.

        Parameters
        ----------
        config_path : str
            path of the file to create configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        Raises
        ------
        InvalidConfigurationError
            if the file can not be read or holds an invalid configuration
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_LOCATION
        try:
            config_dict = yaml.load(Path(config_path).read_text(encoding="utf-8"))
        except FileNotFoundError as error:
            raise InvalidConfigurationError(
                f"The given config file does not exist: {error.filename}"
            ) from error
        except YAMLError as error:
            raise InvalidConfigurationError(
                f"Invalid yaml or json file: {config_path} {error}"
            ) from error
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(f"Invalid configuration file: {config_path}")
        try:
            config = Configuration(**(dict(config_dict) | {"config_path": str(config_path)}))
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {error}"
            ) from error
        config._verify()
        logger.debug("Read configuration %s from %s", config.version, config_path)
        return config

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        config = asdict(self, recurse=True)
        config["tokenizer"]["delimiters"] = sorted(config["tokenizer"]["delimiters"])
        return config

    def as_yaml(self) -> str:
        """Return the configuration as yaml string."""
        stream = StringIO()
        yaml.dump(self.as_dict(), stream)
        return stream.getvalue()

    def _verify(self) -> None:
        """Build the transport without opening it and collect all errors."""
        errors: list[Exception] = []
        if not self.transport:
            errors.append(RequiredConfigurationKeyMissingError("transport"))
        else:
            try:
                Factory.create(deepcopy(self.transport))
            except (FactoryError, TypeError, ValueError) as error:
                errors.append(error)
        if errors:
            raise InvalidConfigurationErrors(errors)
