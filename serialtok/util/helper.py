"""This module contains helper functions that are shared by different modules."""

import re
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Iterable, Union

from colorama import Back, Fore
from colorama.ansi import AnsiFore

from serialtok.util.defaults import DEFAULT_CONFIG_LOCATION

if TYPE_CHECKING:  # pragma: no cover
    from serialtok.util.configuration import Configuration


def print_fcolor(fore: AnsiFore, message: str) -> None:
    """Print a console message in the given color"""
    print(f"{fore}{message}{Fore.RESET}{Back.RESET}")


def camel_to_snake(camel: str) -> str:
    """ensures that the input string is snake_case"""

    _underscorer1 = re.compile(r"(.)([A-Z][a-z]+)")
    _underscorer2 = re.compile("([a-z0-9])([A-Z])")

    subbed = _underscorer1.sub(r"\1_\2", camel)
    return _underscorer2.sub(r"\1_\2", subbed).lower()


def render_bytes(data: Iterable[int]) -> str:
    """Render bytes for display: printable ascii as is, everything else as ``{0x..}``."""
    return "".join(
        chr(byte) if 0x20 <= byte < 0x7F else f"{{0x{byte:x}}}" for byte in bytes(data)
    )


def to_byte_set(delimiters: Union[bytes, bytearray, str, Iterable[int]]) -> frozenset:
    """Normalize a delimiter specification to a frozenset of byte values.

    Strings are encoded as latin-1 so every character maps to exactly one byte.
    """
    if isinstance(delimiters, str):
        delimiters = delimiters.encode("latin-1")
    byte_set = frozenset(delimiters)
    if not all(isinstance(byte, int) and 0 <= byte <= 0xFF for byte in byte_set):
        raise ValueError(f"delimiters must be byte values, got {sorted(byte_set)!r}")
    return byte_set


def get_serialtok_version() -> str:
    """Return the installed serialtok version or ``unknown`` if not installed"""
    try:
        return version("serialtok")
    except PackageNotFoundError:
        return "unknown"


def get_versions_string(config: "Configuration" = None) -> str:
    """
    Returns the version string. If a configuration was found then it's version
    is added as well
    """
    padding = 25
    version_string = f"{'python version:'.ljust(padding)}{sys.version.split()[0]}"
    version_string += f"\n{'serialtok version:'.ljust(padding)}{get_serialtok_version()}"
    version_string += f"\n{'pyserial version:'.ljust(padding)}{version('pyserial')}"
    if config:
        config_version = f"{config.version}, {config.config_path or 'None'}"
    else:
        config_version = f"no configuration found in {DEFAULT_CONFIG_LOCATION}"
    version_string += f"\n{'configuration version:'.ljust(padding)}{config_version}"
    return version_string
