"""Tests for the command executor (with mocked subprocess)."""
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from updater_publish.core.executor import CommandError, CommandExecutor, CommandResult


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def executor(mock_logger):
    return CommandExecutor(mock_logger)


def test_run_command_success(executor, mock_logger):
    """run_command returns CommandResult with success=True when process returns 0."""
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout=None)
        result = executor.run_command(["ssh", "deploy@host", "true"])
    assert isinstance(result, CommandResult)
    assert result.success is True
    assert result.return_code == 0
    assert result.stdout == ""
    assert result.command == "ssh deploy@host true"
    mock_logger.info.assert_any_call("$ ssh deploy@host true")


def test_run_command_streams_output_by_default(executor):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout=None)
        executor.run_command(["scp", "a", "host:/tmp/"])
    kwargs = m_run.call_args.kwargs
    assert kwargs["stdout"] is None
    assert kwargs["stdin"] == subprocess.DEVNULL
    assert "stderr" not in kwargs


def test_run_command_captures_stdout(executor):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="remote log\n")
        result = executor.run_command(["ssh", "host", "cat log"], capture_stdout=True)
    assert m_run.call_args.kwargs["stdout"] == subprocess.PIPE
    assert result.stdout == "remote log\n"


def test_run_command_failure_raises(executor):
    """A non-zero exit raises CommandError carrying the result."""
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=255, stdout=None)
        with pytest.raises(CommandError, match="ssh failed with exit code 255") as excinfo:
            executor.run_command(["ssh", "host", "false"])
    assert excinfo.value.result.return_code == 255
    assert excinfo.value.result.success is False


def test_run_command_failure_allowed(executor):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=1, stdout="partial")
        result = executor.run_command(["ssh", "host", "false"], capture_stdout=True, allow_fail=True)
    assert result.success is False
    assert result.return_code == 1
    assert result.stdout == "partial"


def test_run_command_missing_binary(executor):
    with patch("updater_publish.core.executor.subprocess.run", side_effect=FileNotFoundError("ssh")):
        with pytest.raises(CommandError, match="ssh could not be started"):
            executor.run_command(["ssh", "host"])


def test_run_command_missing_binary_allowed(executor):
    with patch("updater_publish.core.executor.subprocess.run", side_effect=FileNotFoundError("ssh")):
        result = executor.run_command(["ssh", "host"], allow_fail=True)
    assert result.success is False
    assert result.return_code == -1


def test_run_command_timeout(mock_logger):
    executor = CommandExecutor(mock_logger, timeout=5)
    with patch(
        "updater_publish.core.executor.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="scp", timeout=5),
    ) as m_run:
        with pytest.raises(CommandError, match="scp timed out after 5 seconds"):
            executor.run_command(["scp", "a", "host:/tmp/"])
    assert m_run.call_args.kwargs["timeout"] == 5


def test_run_command_timeout_override(executor):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout=None)
        executor.run_command(["ssh", "host", "true"], timeout=3)
    assert m_run.call_args.kwargs["timeout"] == 3
