"""Tests for the Typer CLI (subprocess and PATH lookups mocked)."""
import json
from unittest.mock import MagicMock, patch

import pytest
import typer
from pydantic import ValidationError
from typer.testing import CliRunner

from updater_publish import __version__
from updater_publish.cli.main import _confirm, app
from updater_publish.release.artifacts import discover_artifacts

runner = CliRunner()


@pytest.fixture
def project(tmp_path):
    project = tmp_path / "app"
    release = project / "release" / "2.0.0"
    release.mkdir(parents=True)
    (project / "package.json").write_text(json.dumps({"version": "2.0.0"}))
    (release / "App-2.0.0-Setup.exe").write_text("exe")
    (release / "latest.yml").write_text("version: 2.0.0")
    return project


@pytest.fixture
def env(monkeypatch, key_file):
    monkeypatch.setenv("UPDATER_SSH", "deploy@updates.example.com")
    monkeypatch.setenv("UPDATER_SSH_KEY", str(key_file))
    monkeypatch.setenv("UPDATER_SSH_OPTS", "-o BatchMode=yes")
    monkeypatch.setenv("UPDATER_CONTAINER", "update-server")
    monkeypatch.setenv("UPDATER_PATH", "/srv/updates")
    monkeypatch.setenv("UPDATER_SSH_MUX", "0")


@pytest.fixture
def tools_available():
    with patch("updater_publish.core.detector.shutil.which", return_value="/usr/bin/ssh"):
        yield


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_invalid_port_exits_1(env, monkeypatch, project):
    monkeypatch.setenv("UPDATER_SSH_PORT", "70000")
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        result = runner.invoke(app, ["publish", "-y", "-p", str(project)])
    assert result.exit_code == 1
    assert "UPDATER_SSH_PORT" in result.output
    m_run.assert_not_called()


def test_missing_env_exits_1(project):
    result = runner.invoke(app, ["check", "-p", str(project)])
    assert result.exit_code == 1
    assert "UPDATER_SSH" in result.output


def test_missing_installer_exits_before_remote(env, project, tools_available):
    (project / "release" / "2.0.0" / "App-2.0.0-Setup.exe").unlink()
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        result = runner.invoke(app, ["publish", "-y", "-p", str(project)])
    assert result.exit_code == 1
    m_run.assert_not_called()


def test_check_runs_nothing_remote(env, project, tools_available):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        result = runner.invoke(app, ["check", "-p", str(project)])
    assert result.exit_code == 0, result.output
    m_run.assert_not_called()


def test_publish_success(env, project, tools_available):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="INFO Cleaned up tmp dir\n")
        result = runner.invoke(app, ["publish", "-y", "-p", str(project)])
    assert result.exit_code == 0, result.output
    assert m_run.call_count == 3
    assert (project / "publish-last.log").read_text(encoding="utf-8") == "INFO Cleaned up tmp dir\n"


def test_publish_custom_log_file(env, project, tools_available, tmp_path):
    log_file = tmp_path / "logs" / "last.log"
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="done\n")
        result = runner.invoke(app, ["publish", "-y", "-p", str(project), "--log-file", str(log_file)])
    assert result.exit_code == 0, result.output
    assert log_file.read_text(encoding="utf-8") == "done\n"


def test_publish_remote_failure_exits_1(env, project, tools_available):
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        m_run.side_effect = [
            MagicMock(returncode=0, stdout=None),  # step 1
            MagicMock(returncode=1, stdout=None),  # step 2 (scp)
            MagicMock(returncode=0, stdout=None),  # log tail
        ]
        result = runner.invoke(app, ["publish", "-y", "-p", str(project)])
    assert result.exit_code == 1
    assert m_run.call_count == 3
    assert not (project / "publish-last.log").exists()


def test_check_shows_local_system(env, project, tools_available):
    result = runner.invoke(app, ["check", "-p", str(project)])
    assert result.exit_code == 0, result.output
    assert "Local System" in result.output
    assert "Connection reuse" in result.output


def test_non_positive_timeout_in_config_file_is_ignored(env, project, tools_available, tmp_path):
    (tmp_path / ".updater-publish.yaml").write_text("timeout: 0\n")
    with patch("updater_publish.core.executor.subprocess.run") as m_run:
        result = runner.invoke(app, ["check", "-p", str(project)])
    assert result.exit_code == 0, result.output
    assert not isinstance(result.exception, ValidationError)
    m_run.assert_not_called()



@pytest.fixture
def tty_prompt():
    """Pretend stdin is a terminal and hand back the confirm prompt double."""
    prompt = MagicMock()
    with patch("updater_publish.cli.main.sys.stdin") as m_stdin, \
            patch("updater_publish.cli.main.questionary.confirm", return_value=prompt):
        m_stdin.isatty.return_value = True
        yield prompt


def test_ctrl_c_at_confirmation_exits_130(settings, make_project, tty_prompt):
    tty_prompt.unsafe_ask.side_effect = KeyboardInterrupt
    with pytest.raises(typer.Exit) as excinfo:
        _confirm(settings, discover_artifacts(make_project()))
    assert excinfo.value.exit_code == 130


def test_confirmation_answer_is_returned(settings, make_project, tty_prompt):
    tty_prompt.unsafe_ask.return_value = False
    assert _confirm(settings, discover_artifacts(make_project())) is False
    tty_prompt.unsafe_ask.assert_called_once()
