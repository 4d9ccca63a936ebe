# tests/test_cli/test_cli_commands.py
"""Tests for CLI command functionality."""

import pytest
from typer.testing import CliRunner

from jetworker import __version__
from jetworker.cli.main import cli
from jetworker.config.defaults import ENVIRONMENT_VARIABLE_MAPPINGS
from jetworker.config.loader import ConfigLoader
from jetworker.exceptions import JetworkerConnectionError, WorkerError
from jetworker.job import AbstractJob


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for env_var in ENVIRONMENT_VARIABLE_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [])


@pytest.fixture
def mock_runtime(mocker):
    """Patch out logging setup and the NATS connection used by `worker start`."""
    mocker.patch("jetworker.cli.worker_commands.setup_logging")
    connection_cls = mocker.patch("jetworker.cli.worker_commands.NatsConnection")
    return connection_cls


@pytest.fixture
def cli_job():
    class CliEmailJob(AbstractJob):
        queue_name = "emails"
        listening_options = {"prefetch": 2}

        def perform(self):
            pass

    return CliEmailJob


class TestMainCLI:
    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_worker_help(self, runner):
        result = runner.invoke(cli, ["worker", "--help"])
        assert result.exit_code == 0
        assert "start" in result.output
        assert "jobs" in result.output


class TestWorkerStart:
    def test_start_runs_worker(self, runner, mock_runtime, mocker, cli_job):
        worker_cls = mocker.patch("jetworker.cli.worker_commands.Worker")
        worker = worker_cls.return_value

        result = runner.invoke(
            cli, ["worker", "start", "CliEmailJob", "--nats-url", "nats://broker:4222", "--pidfile", "/tmp/w.pid"]
        )

        assert result.exit_code == 0, result.output
        assert mock_runtime.call_args.args == ("nats://broker:4222",)
        worker_cls.assert_called_once_with(["CliEmailJob"], connection=mock_runtime.return_value)
        worker.use_pidfile.assert_called_once_with("/tmp/w.pid")
        mock_runtime.return_value.connect.assert_called_once_with()
        worker.install_signal_handlers.assert_called_once_with()
        worker.work_forever.assert_called_once_with()
        worker.remove_pidfile.assert_called_once_with()

    def test_start_jobs_from_config(self, runner, mock_runtime, mocker, tmp_path):
        worker_cls = mocker.patch("jetworker.cli.worker_commands.Worker")
        config_file = tmp_path / "jetworker.yaml"
        config_file.write_text("worker:\n  jobs:\n    - myapp.jobs.Send\nnats:\n  servers:\n    - nats://cfg:4222\n")

        result = runner.invoke(cli, ["worker", "start", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert worker_cls.call_args.args == (["myapp.jobs.Send"],)
        assert mock_runtime.call_args.args == ("nats://cfg:4222",)
        worker_cls.return_value.use_pidfile.assert_not_called()

    def test_start_without_jobs_fails(self, runner, mock_runtime):
        result = runner.invoke(cli, ["worker", "start"])

        assert result.exit_code == 1
        mock_runtime.return_value.connect.assert_not_called()

    def test_start_with_running_worker_fails(self, runner, mock_runtime, mocker):
        worker_cls = mocker.patch("jetworker.cli.worker_commands.Worker")
        worker_cls.return_value.use_pidfile.side_effect = WorkerError("already running")

        result = runner.invoke(cli, ["worker", "start", "Anything", "--pidfile", "/tmp/w.pid"])

        assert result.exit_code == 1
        worker_cls.return_value.work_forever.assert_not_called()

    def test_start_connection_failure(self, runner, mock_runtime, mocker):
        mocker.patch("jetworker.cli.worker_commands.Worker")
        mock_runtime.return_value.connect.side_effect = JetworkerConnectionError("refused")

        result = runner.invoke(cli, ["worker", "start", "Anything"])

        assert result.exit_code == 1

    def test_start_missing_config(self, runner, mock_runtime, tmp_path):
        result = runner.invoke(cli, ["worker", "start", "Anything", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestWorkerJobs:
    def test_jobs_table(self, runner, cli_job):
        result = runner.invoke(cli, ["worker", "jobs", "CliEmailJob"])

        assert result.exit_code == 0, result.output
        assert "CliEmailJob" in result.output
        assert "instance" in result.output
        assert "emails" in result.output
        assert "prefetch=2" in result.output

    def test_jobs_unknown(self, runner):
        result = runner.invoke(cli, ["worker", "jobs", "no.such.module.Job"])

        assert result.exit_code == 1
        assert "Error" in result.output
