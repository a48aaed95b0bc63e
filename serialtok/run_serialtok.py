"""This module can be used to start serialtok."""

import logging
import logging.config
import os
import signal
import sys
import warnings

import click
from colorama import Fore
from prometheus_client import start_http_server

from serialtok.factory_error import InvalidConfigurationError
from serialtok.runner import Runner
from serialtok.util.configuration import Configuration
from serialtok.util.defaults import DEFAULT_LOG_CONFIG, DEFAULT_POLL_INTERVAL, EXITCODES
from serialtok.util.helper import get_serialtok_version, get_versions_string, print_fcolor

warnings.simplefilter("always", DeprecationWarning)
logging.captureWarnings(True)
logging.config.dictConfig(DEFAULT_LOG_CONFIG)
logger = logging.getLogger("serialtok")


def _print_version(config: "Configuration") -> None:
    print(get_versions_string(config))
    sys.exit(EXITCODES.SUCCESS.value)


def _get_configuration(config_path: str | None) -> Configuration:
    try:
        config = Configuration.from_source(config_path)
        config.logger.setup_logging()
        root_logger = logging.getLogger("root")
        logger.info("Log level set to '%s'", logging.getLevelName(root_logger.level))
        return config
    except InvalidConfigurationError as error:
        print(f"InvalidConfigurationError: {error}", file=sys.stderr)
        sys.exit(EXITCODES.CONFIGURATION_ERROR.value)


def _start_metrics_exporter(config: Configuration) -> None:
    if config.metrics.enabled:
        start_http_server(config.metrics.port)
        logger.info("Metrics exporter listening on port %s", config.metrics.port)


@click.group(name="serialtok")
@click.version_option(version=get_serialtok_version(), message="%(version)s")
def cli() -> None:
    """
    serialtok reads a byte stream from a serial port in the background and splits it into
    delimiter terminated tokens.
    """
    if "pytest" not in sys.modules:  # needed for not blocking tests
        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)


@cli.command(short_help="Receive and print tokens")
@click.argument("config", required=False)
@click.option("--count", type=int, default=None, help="Exit after this many tokens")
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_POLL_INTERVAL,
    show_default=True,
    help="Seconds between two polls of the tokenizer",
)
@click.option(
    "--version",
    is_flag=True,
    default=False,
    help="Print version and exit (includes also config version)",
)
def run(config: str | None, count: int | None, interval: float, version=None) -> None:
    """
    Receive bytes from the configured transport and print every token.

    CONFIG is a path to a configuration file.
    """
    configuration = _get_configuration(config)
    if version:
        _print_version(configuration)
    for version_line in get_versions_string(configuration).split("\n"):
        logger.info(version_line)
    _start_metrics_exporter(configuration)
    runner = Runner.get_runner(configuration)
    try:
        runner.start(count=count, interval=interval)
    except SystemExit as error:
        logger.error("Exiting with error code %s", error.code)
        sys.exit(error.code)
    # pylint: disable=broad-except
    except Exception as error:
        if os.environ.get("DEBUG", False):
            logger.exception("A critical error occurred: %s", error)  # pragma: no cover
        else:
            logger.critical("A critical error occurred: %s", error)
        sys.exit(EXITCODES.ERROR.value)
    # pylint: enable=broad-except


@cli.command(short_help="Send messages and print the tokens that come back")
@click.argument("config")
@click.option("--messages", type=int, default=100, show_default=True, help="Messages to send")
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_POLL_INTERVAL,
    show_default=True,
    help="Seconds to wait after each message before polling",
)
def loopback(config: str, messages: int, interval: float) -> None:
    """
    Functional test for a serial port with a loopback plug installed.
    Sends 'Hello World <n>;' and prints every token received.

    CONFIG is a path to a configuration file.
    """
    configuration = _get_configuration(config)
    for version_line in get_versions_string(configuration).split("\n"):
        logger.info(version_line)
    _start_metrics_exporter(configuration)
    runner = Runner.get_runner(configuration)
    print("Entering Main Loop.")
    received = runner.loopback(messages=messages, interval=interval)
    print_fcolor(Fore.GREEN, f"Received {received} of {messages} tokens")


@cli.group(name="test", short_help="Execute tests against a given configuration")
def test() -> None:
    """
    Verify the configuration.
    """


@test.command(name="config")
@click.argument("config")
def test_config(config: str) -> None:
    """
    Verify the configuration file

    CONFIG is a path to a configuration file.
    """
    _get_configuration(config)
    print_fcolor(Fore.GREEN, "The verification of the configuration was successful")


@cli.command(short_help="Print a complete configuration file", name="print")
@click.argument("config")
def print_config(config: str) -> None:
    """
    Prints the given configuration as yaml including all defaults.

    CONFIG is a path to a configuration file.
    """
    configuration = _get_configuration(config)
    print(configuration.as_yaml())


def signal_handler(__: int, _) -> None:
    """Handle signals for stopping the runner."""
    if Runner._runner is not None:  # pylint: disable=protected-access
        Runner._runner.stop()  # pylint: disable=protected-access


if __name__ == "__main__":
    cli()
