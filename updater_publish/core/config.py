"""
Configuration management.

Connection settings come from the environment (and a local .env file) through
pydantic-settings. Run options come from the CLI, falling back to an optional
YAML file.
"""

from pathlib import Path
from typing import Any, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from updater_publish.utils.validation import (
    parse_option_string,
    require_value,
    validate_port,
    validate_ssh_destination,
)

CONFIG_FILE_NAME = ".updater-publish.yaml"
DEFAULT_LOCAL_LOG = "publish-last.log"


class ConfigError(Exception):
    """Raised when the publish configuration is invalid."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("\n".join(self.messages))


def load_config_file() -> dict[str, Any]:
    """
    Load optional defaults from ~/.updater-publish.yaml or ./.updater-publish.yaml.

    The first file found wins. Returns a dict with any of local_log, log_dir
    (Path), verbose (bool) and timeout (int). Missing keys are omitted so
    callers can use their own defaults.
    """
    result: dict[str, Any] = {}
    candidates = [
        Path.home() / CONFIG_FILE_NAME,
        Path.cwd() / CONFIG_FILE_NAME,
    ]
    raw: dict[str, Any] = {}
    for path in candidates:
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Ignoring unreadable config file {path}: {e}")
                raw = {}
            break
    if not isinstance(raw, dict) or not raw:
        return result
    if "local_log" in raw:
        result["local_log"] = Path(raw["local_log"]).expanduser()
    if "log_dir" in raw:
        result["log_dir"] = Path(raw["log_dir"]).expanduser()
    if "verbose" in raw:
        result["verbose"] = bool(raw["verbose"])
    if "timeout" in raw:
        try:
            timeout = int(raw["timeout"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-integer timeout in config file: {raw['timeout']!r}")
        else:
            if timeout > 0:
                result["timeout"] = timeout
            else:
                logger.warning(f"Ignoring non-positive timeout in config file: {timeout}")
    return result


class PublishSettings(BaseSettings):
    """Connection and target settings, read from UPDATER_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="UPDATER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    ssh: str = ""
    ssh_port: int = 22
    ssh_key: str = ""
    ssh_opts: str = ""
    container: str = ""
    path: str = ""
    ssh_mux: bool = True
    docker: str = "sudo -n docker"
    tmp_prefix: str = "/tmp/app-publish"

    @field_validator("ssh", mode="before")
    @classmethod
    def validate_ssh(cls, v):
        return validate_ssh_destination(require_value(v, "UPDATER_SSH"))

    @field_validator("ssh_port", mode="before")
    @classmethod
    def validate_ssh_port(cls, v):
        if v is None or str(v).strip() == "":
            v = "22"
        return validate_port(v, "UPDATER_SSH_PORT")

    @field_validator("ssh_key", mode="before")
    @classmethod
    def validate_ssh_key(cls, v):
        key = require_value(v, "UPDATER_SSH_KEY")
        if not Path(key).expanduser().is_file():
            raise ValueError(f"UPDATER_SSH_KEY file not found: {key}")
        return key

    @field_validator("ssh_opts", mode="before")
    @classmethod
    def validate_ssh_opts(cls, v):
        tokens = parse_option_string(require_value(v, "UPDATER_SSH_OPTS"), "UPDATER_SSH_OPTS")
        return " ".join(tokens)

    @field_validator("container", mode="before")
    @classmethod
    def validate_container(cls, v):
        return require_value(v, "UPDATER_CONTAINER")

    @field_validator("path", mode="before")
    @classmethod
    def validate_path(cls, v):
        return require_value(v, "UPDATER_PATH")

    @field_validator("ssh_mux", mode="before")
    @classmethod
    def validate_ssh_mux(cls, v):
        """Only "0" disables multiplexing; unset or blank keeps it on."""
        if isinstance(v, bool):
            return v
        if v is None:
            return True
        return str(v).strip() != "0"

    @field_validator("docker", mode="before")
    @classmethod
    def validate_docker(cls, v):
        tokens = parse_option_string(require_value(v, "UPDATER_DOCKER"), "UPDATER_DOCKER")
        return " ".join(tokens)

    @field_validator("tmp_prefix", mode="before")
    @classmethod
    def validate_tmp_prefix(cls, v):
        prefix = require_value(v, "UPDATER_TMP_PREFIX")
        tokens = parse_option_string(prefix, "UPDATER_TMP_PREFIX")
        if len(tokens) != 1 or not prefix.startswith("/"):
            raise ValueError(
                f"Invalid UPDATER_TMP_PREFIX: {prefix}. Must be a single absolute path."
            )
        return prefix.rstrip("/") or "/tmp/app-publish"

    @property
    def ssh_option_tokens(self) -> List[str]:
        """Extra ssh options as an argument list."""
        return self.ssh_opts.split()

    @property
    def key_path(self) -> Path:
        return Path(self.ssh_key).expanduser()


def _error_message(error: dict) -> str:
    """Extract the operator-facing message from a pydantic error entry."""
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    field = ".".join(str(part) for part in error.get("loc", ()))
    env_name = f"UPDATER_{field.upper()}" if field else "configuration"
    return f"Invalid {env_name}: {error.get('msg', 'invalid value')}"


def load_settings(**overrides: Any) -> PublishSettings:
    """
    Build PublishSettings from the environment.

    Raises:
        ConfigError: with one message per invalid setting
    """
    try:
        return PublishSettings(**overrides)
    except ValidationError as e:
        raise ConfigError([_error_message(err) for err in e.errors()]) from e


class AppConfig(BaseModel):
    """Per-run options."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    project_dir: Path = Field(default=Path("."))
    local_log: Optional[Path] = None
    log_dir: Optional[Path] = None
    verbose: bool = False
    timeout: Optional[int] = None

    @field_validator("project_dir", mode="before")
    @classmethod
    def validate_project_dir(cls, v):
        """Validate and convert project_dir to Path."""
        if v is None:
            return Path(".")
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        return v

    def model_post_init(self, __context):
        """Resolve paths; the local log defaults to publish-last.log in the project dir."""
        self.project_dir = self.project_dir.expanduser().resolve()
        if self.local_log is None:
            self.local_log = self.project_dir / DEFAULT_LOCAL_LOG
        else:
            self.local_log = self.local_log.expanduser().resolve()
        if self.log_dir is not None:
            self.log_dir = self.log_dir.expanduser().resolve()
            self.log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_sources(
        cls,
        project_dir: Optional[Path] = None,
        local_log: Optional[Path] = None,
        log_dir: Optional[Path] = None,
        verbose: bool = False,
        timeout: Optional[int] = None,
    ) -> "AppConfig":
        """Merge CLI values over the optional YAML config file."""
        file_cfg = load_config_file()
        return cls(
            project_dir=project_dir if project_dir is not None else Path.cwd(),
            local_log=local_log if local_log is not None else file_cfg.get("local_log"),
            log_dir=log_dir if log_dir is not None else file_cfg.get("log_dir"),
            verbose=verbose or file_cfg.get("verbose", False),
            timeout=timeout if timeout is not None else file_cfg.get("timeout"),
        )
