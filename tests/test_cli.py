"""
Tests for the command line entry point.
"""
from unittest.mock import Mock, patch

import pytest

from river_orchestration import cli
from river_orchestration.exceptions import RemoteConnectionError


@pytest.fixture(autouse=True)
def no_log_files():
    with patch.object(cli, "setup_logging") as mock_setup:
        yield mock_setup


class TestCli:
    """Argument parsing and exit codes."""

    def test_day_offset_parsing(self):
        args = cli.build_parser().parse_args(["datasets", "-d", "-1"])

        assert args.command == "datasets"
        assert args.day_offset == -1

    def test_day_offset_default(self):
        assert cli.build_parser().parse_args(["datasets"]).day_offset == 0

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_fetch_success(self, no_log_files):
        with patch.object(cli, "run_fetch_cycle", return_value=Mock(success=True)) as mock_fetch:
            assert cli.main(["fetch", "--verbose"]) == 0

        mock_fetch.assert_called_once_with()
        no_log_files.assert_called_once_with(True, name="river_fetch")

    def test_fetch_partial_failure(self):
        with patch.object(cli, "run_fetch_cycle", return_value=Mock(success=False)):
            assert cli.main(["fetch"]) == 1

    def test_fetch_connection_failure(self):
        with patch.object(cli, "run_fetch_cycle",
                          side_effect=RemoteConnectionError("530 Login incorrect")):
            assert cli.main(["fetch"]) == 1

    def test_datasets_passes_offset(self):
        with patch.object(cli, "generate_datasets",
                          return_value=Mock(success=True)) as mock_generate:
            assert cli.main(["datasets", "--day-offset", "-2"]) == 0

        mock_generate.assert_called_once_with(day_offset=-2)

    def test_minimize_gauges(self, no_log_files):
        with patch.object(cli, "minimize_gauge_locations", return_value=12) as mock_minimize:
            assert cli.main(["minimize-gauges"]) == 0

        mock_minimize.assert_called_once_with()
        no_log_files.assert_called_once_with(False, name="river_minimize_gauges")
