# pylint: disable=missing-docstring
from importlib.metadata import PackageNotFoundError
from unittest import mock

import pytest
from colorama import Back, Fore

from serialtok.util.configuration import Configuration
from serialtok.util.helper import (
    camel_to_snake,
    get_serialtok_version,
    get_versions_string,
    print_fcolor,
    render_bytes,
    to_byte_set,
)


class TestCamelToSnake:
    @pytest.mark.parametrize(
        "camel_case, snake_case",
        [
            ("AsyncByteSource", "async_byte_source"),
            ("SerialTransport", "serial_transport"),
            ("Tokenizer", "tokenizer"),
            ("already_snake", "already_snake"),
        ],
    )
    def test_camel_to_snake(self, camel_case, snake_case):
        assert camel_to_snake(camel_case) == snake_case


class TestRenderBytes:
    @pytest.mark.parametrize(
        "data, expected",
        [
            (b"Hello World 0", "Hello World 0"),
            (b"\x00A\n", "{0x0}A{0xa}"),
            (b"", ""),
            ([0x7F, 0xFF], "{0x7f}{0xff}"),
        ],
    )
    def test_render_bytes(self, data, expected):
        assert render_bytes(data) == expected


class TestToByteSet:
    @pytest.mark.parametrize(
        "delimiters, expected",
        [
            (";", {0x3B}),
            (" ;", {0x20, 0x3B}),
            (b"\x00", {0x00}),
            (bytearray(b"ab"), {0x61, 0x62}),
            ([10, 13], {10, 13}),
            (frozenset({1}), {1}),
        ],
    )
    def test_to_byte_set(self, delimiters, expected):
        assert to_byte_set(delimiters) == frozenset(expected)

    @pytest.mark.parametrize("delimiters", [[256], [-1], ["a"]])
    def test_to_byte_set_rejects_non_bytes(self, delimiters):
        with pytest.raises(ValueError):
            to_byte_set(delimiters)

    def test_non_latin1_string_raises(self):
        with pytest.raises(UnicodeEncodeError):
            to_byte_set("€")


class TestPrintFcolor:
    def test_print_fcolor_resets_color(self, capsys):
        print_fcolor(Fore.GREEN, "ok")
        assert capsys.readouterr().out == f"{Fore.GREEN}ok{Fore.RESET}{Back.RESET}\n"


class TestGetVersionsString:
    def test_without_configuration(self):
        versions = get_versions_string()
        assert "python version:" in versions
        assert "serialtok version:" in versions
        assert "pyserial version:" in versions
        assert "no configuration found in /etc/serialtok/serialtok.yml" in versions

    def test_with_configuration(self):
        config = Configuration(version="1.2.3", config_path="my/config.yml")
        versions = get_versions_string(config)
        assert "configuration version:   1.2.3, my/config.yml" in versions

    def test_serialtok_version_is_unknown_if_not_installed(self):
        with mock.patch("serialtok.util.helper.version", side_effect=PackageNotFoundError):
            assert get_serialtok_version() == "unknown"
