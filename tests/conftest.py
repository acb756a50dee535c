"""Shared fixtures."""
import json
import os
import platform
from unittest.mock import MagicMock

import pytest
from loguru import logger

from updater_publish.core.config import PublishSettings
from updater_publish.core.detector import SystemDetector, SystemInfo
from updater_publish.core.executor import CommandExecutor, CommandResult


@pytest.fixture(autouse=True, scope="session")
def _warm_platform_cache():
    """platform.platform() shells out to ``uname -p`` once via subprocess.run and
    caches it; warm that cache so tests that mock subprocess.run only see the
    package's own calls."""
    platform.uname()
    platform.platform()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's UPDATER_* variables, .env and home config out of tests."""
    for name in list(os.environ):
        if name.startswith("UPDATER_"):
            monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    yield
    # the CLI points loguru at the runner's temporary stderr
    logger.remove()


@pytest.fixture
def key_file(tmp_path):
    key = tmp_path / "id_ed25519"
    key.write_text("dummy key\n")
    return key


@pytest.fixture
def settings(key_file):
    return PublishSettings(
        _env_file=None,
        ssh="deploy@updates.example.com",
        ssh_port="2222",
        ssh_key=str(key_file),
        ssh_opts="-o StrictHostKeyChecking=accept-new",
        container="update-server",
        path="/srv/updates",
    )


@pytest.fixture
def make_project(tmp_path):
    """Create package.json and a release directory with the given files."""

    def _make(version="1.2.0", files=("App-1.2.0-Setup.exe", "latest.yml"), release_name=None):
        project = tmp_path / "project"
        project.mkdir(exist_ok=True)
        (project / "package.json").write_text(json.dumps({"name": "app", "version": version}))
        release_dir = project / "release" / (release_name or version.split("+")[0])
        release_dir.mkdir(parents=True, exist_ok=True)
        for name in files:
            (release_dir / name).write_text(f"content of {name}")
        return project

    return _make


def ok_result(command, stdout=""):
    return CommandResult(
        command=" ".join(command),
        return_code=0,
        stdout=stdout,
        stderr="",
        duration=0.01,
        success=True,
    )


@pytest.fixture
def executor():
    """CommandExecutor double that records commands and succeeds."""
    mock = MagicMock(spec=CommandExecutor)
    mock.run_command.side_effect = lambda command, **kwargs: ok_result(command)
    return mock


@pytest.fixture
def detector():
    mock = MagicMock(spec=SystemDetector)
    mock.detect_system.return_value = SystemInfo(
        os_type="Linux", platform="Linux-test", python_version="3.11.0", hostname="testhost"
    )
    mock.check_required_tools.return_value = []
    mock.supports_multiplexing.return_value = True
    return mock


def commands_of(executor_mock):
    """The argument lists passed to run_command, in order."""
    return [c.args[0] for c in executor_mock.run_command.call_args_list]


def is_master_close(command):
    return command[0] == "ssh" and "-O" in command and "exit" in command
