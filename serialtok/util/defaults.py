"""Default values for serialtok."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for serialtok."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""
    SOURCE_ERROR = 3
    """An error while acquiring bytes from the transport."""
    TRANSPORT_NOT_REACHABLE = 4
    """The configured transport could not be opened."""


DEFAULT_CONFIG_LOCATION = "/etc/serialtok/serialtok.yml"
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(threadName)-14s %(name)-15s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_DELIMITERS = b" "
DEFAULT_MAX_TOKEN_LENGTH = 128
DEFAULT_READ_TIMEOUT = 0.1
DEFAULT_MAX_READ_RETRIES = 5
DEFAULT_RETRY_BACKOFF = 0.05
DEFAULT_MAX_RETRY_BACKOFF = 1.0
DEFAULT_POLL_INTERVAL = 0.025

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "serialtok": {
            "class": "serialtok.util.logging.SerialtokFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "serialtok",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "serial": {"level": "WARNING"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
