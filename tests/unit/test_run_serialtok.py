# pylint: disable=missing-docstring
# pylint: disable=protected-access
# pylint: disable=attribute-defined-outside-init
from importlib.metadata import version
from pathlib import Path
from unittest import mock

import pytest
from click.testing import CliRunner

from serialtok import run_serialtok
from serialtok.run_serialtok import cli
from serialtok.runner import Runner
from serialtok.util.defaults import EXITCODES
from tests.testdata.metadata import (
    path_to_config,
    path_to_invalid_config,
    path_to_unreachable_config,
)


@pytest.fixture(autouse=True)
def fixture_no_logging_setup():
    with mock.patch("serialtok.util.configuration.LoggerConfig.setup_logging"):
        yield


class TestRunSerialtokCli:
    def setup_method(self):
        self.cli_runner = CliRunner()

    @pytest.mark.parametrize(
        "command, target",
        [
            (f"run {path_to_config}", "serialtok.run_serialtok.Runner.start"),
            (f"loopback {path_to_config}", "serialtok.run_serialtok.Runner.loopback"),
            (f"test config {path_to_config}", "serialtok.run_serialtok._get_configuration"),
            (f"print {path_to_config}", "serialtok.util.configuration.Configuration.as_yaml"),
        ],
    )
    def test_cli_commands_with_configs(self, command: str, target: str):
        with mock.patch(target) as mocked_target:
            mocked_target.return_value = 0
            result = self.cli_runner.invoke(cli, command.split())
        mocked_target.assert_called()
        assert result.exit_code == 0, result.output

    def test_version_option(self):
        result = self.cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == run_serialtok.get_serialtok_version()

    def test_run_version_prints_versions_and_config_version(self):
        result = self.cli_runner.invoke(cli, ["run", path_to_config, "--version"])
        assert result.exit_code == 0
        assert f"pyserial version:        {version('pyserial')}" in result.output
        assert f"configuration version:   1, {path_to_config}" in result.output

    def test_run_prints_tokens(self):
        result = self.cli_runner.invoke(
            cli, ["run", path_to_config, "--count", "2", "--interval", "0.001"]
        )
        assert result.exit_code == 0, result.output
        assert "token received: 13bytes : [ Hello World 0 ]" in result.output
        assert "token received: 13bytes : [ Hello World 1 ]" in result.output

    def test_run_with_missing_config_exits_with_configuration_error(self):
        result = self.cli_runner.invoke(cli, ["run", "does/not/exist.yml"])
        assert result.exit_code == EXITCODES.CONFIGURATION_ERROR

    def test_run_with_unreachable_transport_exits(self):
        result = self.cli_runner.invoke(cli, ["run", path_to_unreachable_config])
        assert result.exit_code == EXITCODES.TRANSPORT_NOT_REACHABLE

    def test_run_exits_with_error_on_unexpected_exception(self):
        with mock.patch("serialtok.run_serialtok.Runner.start", side_effect=KeyError("boom")):
            result = self.cli_runner.invoke(cli, ["run", path_to_config])
        assert result.exit_code == EXITCODES.ERROR

    @pytest.mark.parametrize(
        "command, target",
        [
            ("run", "serialtok.run_serialtok.Runner.start"),
            ("loopback", "serialtok.run_serialtok.Runner.loopback"),
        ],
    )
    def test_starts_metrics_exporter_if_enabled(self, tmp_path, command, target):
        config_path = tmp_path / "metrics.yml"
        content = Path(path_to_config).read_text(encoding="utf-8")
        config_path.write_text(
            content.replace("enabled: false", "enabled: true"),
            encoding="utf-8",
        )
        with mock.patch("serialtok.run_serialtok.start_http_server") as mock_server:
            with mock.patch(target, return_value=0):
                result = self.cli_runner.invoke(cli, [command, str(config_path)])
        assert result.exit_code == 0, result.output
        mock_server.assert_called_once_with(8000)

    def test_loopback_logs_versions(self):
        with mock.patch("serialtok.run_serialtok.Runner.loopback", return_value=0):
            with mock.patch("serialtok.run_serialtok.logger") as mock_logger:
                result = self.cli_runner.invoke(cli, ["loopback", path_to_config])
        assert result.exit_code == 0, result.output
        logged = [call.args[0] for call in mock_logger.info.call_args_list]
        assert any(line.startswith("serialtok version:") for line in logged)
        assert any(line.startswith("configuration version:") for line in logged)

    def test_loopback_prints_summary(self):
        result = self.cli_runner.invoke(
            cli, ["loopback", path_to_config, "--messages", "2", "--interval", "0.05"]
        )
        assert result.exit_code == 0, result.output
        assert "Entering Main Loop." in result.output
        assert "Sending: 'Hello World 1;'" in result.output
        assert "of 2 tokens" in result.output

    def test_test_config_verifies_configuration(self):
        result = self.cli_runner.invoke(cli, ["test", "config", path_to_config])
        assert result.exit_code == 0
        assert "The verification of the configuration was successful" in result.output

    def test_test_config_with_invalid_configuration_exits(self):
        result = self.cli_runner.invoke(cli, ["test", "config", path_to_invalid_config])
        assert result.exit_code == EXITCODES.CONFIGURATION_ERROR

    def test_print_prints_complete_configuration(self):
        result = self.cli_runner.invoke(cli, ["print", path_to_config])
        assert result.exit_code == 0
        assert "transport:" in result.output
        assert "max_token_length: 32" in result.output
        assert "max_read_retries: 2" in result.output

    def test_signal_handler_stops_runner(self):
        Runner._runner = mock.MagicMock()
        run_serialtok.signal_handler(15, None)
        Runner._runner.stop.assert_called_once()

    def test_signal_handler_without_runner_does_nothing(self):
        run_serialtok.signal_handler(15, None)
