"""Unit tests for the docker-tester command line."""

import argparse
from unittest.mock import MagicMock, patch

import pytest

from docker_tester import cli
from docker_tester.models import ContainerHandle, ContainerNotFoundError, ContainerStartError

HANDLE = ContainerHandle(id="3f2a9c1b7d4e", host="127.0.0.1", port=49153, image="postgres:14-alpine")


@pytest.fixture
def manager():
    mock = MagicMock()
    mock.start_container.return_value = HANDLE
    mock.cleanup_managed.return_value = []
    with patch("docker_tester.cli.get_container_manager", return_value=mock), patch("docker_tester.cli.setup_logging"):
        yield mock


class TestParseEnv:
    """Tests for KEY=VALUE parsing."""

    def test_pair(self):
        assert cli.parse_env("POSTGRES_USER=postgres") == ("POSTGRES_USER", "postgres")

    def test_value_with_equals(self):
        assert cli.parse_env("OPTS=a=b") == ("OPTS", "a=b")

    def test_empty_value(self):
        assert cli.parse_env("EMPTY=") == ("EMPTY", "")

    @pytest.mark.parametrize("value", ["NOVALUE", "=value"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_env(value)


class TestRun:
    """Tests for the run command."""

    def test_starts_container(self, manager, capsys):
        code = cli.main(["run", "postgres:14-alpine", "--port", "5432", "-e", "POSTGRES_USER=postgres", "-e", "POSTGRES_PASSWORD=pw"])

        assert code == 0
        manager.start_container.assert_called_once_with(
            "postgres:14-alpine",
            "5432",
            environment={"POSTGRES_USER": "postgres", "POSTGRES_PASSWORD": "pw"},
        )
        output = capsys.readouterr().out
        assert "3f2a9c1b7d4e" in output
        assert "127.0.0.1:49153" in output

    def test_quiet_prints_id_only(self, manager, capsys):
        cli.main(["run", "redis:7", "-p", "6379", "-q"])

        assert capsys.readouterr().out.strip() == "3f2a9c1b7d4e"

    def test_port_required(self, manager):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["run", "redis:7"])

        assert exc_info.value.code == 2

    def test_start_failure(self, manager, capsys):
        manager.start_container.side_effect = ContainerStartError("redis:7")

        assert cli.main(["run", "redis:7", "-p", "6379"]) == 1
        assert "Cannot start the image[redis:7] container" in capsys.readouterr().err


class TestStop:
    """Tests for the stop command."""

    def test_stops_each_container(self, manager):
        assert cli.main(["stop", "aaaaaaaaaaaa", "bbbbbbbbbbbb"]) == 0

        assert [c.args[0] for c in manager.stop_container.call_args_list] == ["aaaaaaaaaaaa", "bbbbbbbbbbbb"]

    def test_unknown_container(self, manager):
        manager.stop_container.side_effect = ContainerNotFoundError("aaaaaaaaaaaa")

        assert cli.main(["stop", "aaaaaaaaaaaa"]) == 1


class TestCleanup:
    """Tests for the cleanup command."""

    def test_nothing_to_remove(self, manager, capsys):
        assert cli.main(["cleanup"]) == 0
        assert "No managed containers" in capsys.readouterr().out

    def test_lists_removed(self, manager, capsys):
        manager.cleanup_managed.return_value = ["3f2a9c1b7d4e"]

        cli.main(["cleanup"])

        assert "3f2a9c1b7d4e" in capsys.readouterr().out


class TestPostgres:
    """Tests for the postgres command."""

    def test_interrupt_tears_down(self, manager):
        with patch("docker_tester.cli.asyncio.run", side_effect=KeyboardInterrupt) as mock_run:
            assert cli.main(["postgres", "--migrations", "./migrations"]) == 0

        mock_run.assert_called_once()
        mock_run.call_args.args[0].close()
