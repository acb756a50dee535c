"""
End-to-end publish run.

    preflight   tools on PATH, version, release artifacts (local only)
    step 1      create the remote tmp dir and log
    step 2      scp manifest and installer into the tmp dir
    step 3      docker cp into the container, print the log, remove tmp dir

A failed step prints the tail of the remote log and raises PublishFailed.
The master connection is closed on every path by SSHSession.
"""

from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel
from rich.console import Console

from updater_publish.cli import formatters
from updater_publish.core.config import AppConfig, PublishSettings
from updater_publish.core.detector import SystemDetector
from updater_publish.core.executor import CommandError, CommandExecutor
from updater_publish.release.artifacts import ReleaseArtifacts, discover_artifacts
from updater_publish.remote.session import SSHSession
from updater_publish.remote.steps import RemotePlan

REQUIRED_TOOLS = ["ssh", "scp"]
TOTAL_STEPS = 3


class PublishFailed(Exception):
    """Raised when any part of a publish run fails."""


class PublishResult(BaseModel):
    """Outcome of a successful publish."""

    version: str
    manifest_name: str
    installer_name: str
    log_file: Path
    output: str


class Publisher:
    """Publish one release to the update server container."""

    def __init__(
        self,
        settings: PublishSettings,
        config: AppConfig,
        executor: Optional[CommandExecutor] = None,
        detector: Optional[SystemDetector] = None,
        console: Optional[Console] = None,
        control_dir: Optional[Path] = None,
    ):
        self.settings = settings
        self.config = config
        self.executor = executor or CommandExecutor(timeout=config.timeout)
        self.detector = detector or SystemDetector()
        self.system_info = self.detector.detect_system()
        self.console = console or Console()
        self.control_dir = control_dir

    def check_tools(self) -> None:
        """Fail if ssh or scp is not on PATH."""
        missing = self.detector.check_required_tools(REQUIRED_TOOLS)
        if missing:
            details = "; ".join(f"{tool.name} ({tool.suggestion})" for tool in missing)
            raise PublishFailed(f"Missing required tools: {details}")

    def preflight(self) -> ReleaseArtifacts:
        """
        Run all local checks.

        Raises:
            PublishFailed: if a required tool is missing
            ArtifactError: if the version or release files are missing
        """
        self.check_tools()
        return discover_artifacts(self.config.project_dir)

    def build_plan(self, artifacts: ReleaseArtifacts, stamp: Optional[int] = None) -> RemotePlan:
        return RemotePlan(
            container=self.settings.container,
            container_path=self.settings.path,
            manifest_name=artifacts.manifest_name,
            installer_name=artifacts.installer_name,
            tmp_prefix=self.settings.tmp_prefix,
            docker=self.settings.docker,
            stamp=stamp,
        )

    def create_session(self) -> SSHSession:
        return SSHSession(
            self.settings,
            self.executor,
            use_mux=self.detector.supports_multiplexing(self.system_info.os_type),
            control_dir=self.control_dir,
        )

    def publish(self, artifacts: ReleaseArtifacts, plan: Optional[RemotePlan] = None) -> PublishResult:
        """
        Upload the artifacts and replace them inside the container.

        Raises:
            PublishFailed: if any remote step fails
        """
        plan = plan or self.build_plan(artifacts)
        logger.info(f"Publishing {artifacts.version} to {self.settings.ssh} ({plan.tmp_dir})")

        with self.create_session() as session:
            try:
                session.open()

                formatters.print_step(self.console, 1, TOTAL_STEPS, "📁 Preparing remote tmp directory...")
                session.run(plan.prepare_script())
                formatters.print_step_done(self.console, "Remote tmp directory ready.")

                formatters.print_step(self.console, 2, TOTAL_STEPS, "📤 Uploading artifacts to remote server...")
                session.upload([artifacts.manifest, artifacts.installer], plan.upload_target)
                formatters.print_step_done(self.console, "Artifacts uploaded.")

                formatters.print_step(
                    self.console, 3, TOTAL_STEPS, "🐳 Publishing into container and cleaning up..."
                )
                result = session.run(plan.publish_script(), capture_stdout=True)
                self._write_local_log(result.stdout)
                formatters.print_step_done(self.console, "Published into container.")
            except (CommandError, OSError) as exc:
                logger.error(f"Publish failed: {exc}")
                formatters.print_failure(self.console, str(exc))
                self._print_remote_log_tail(session, plan)
                raise PublishFailed(str(exc)) from exc

        logger.info(f"Published {artifacts.version}")
        return PublishResult(
            version=artifacts.version,
            manifest_name=artifacts.manifest_name,
            installer_name=artifacts.installer_name,
            log_file=self.config.local_log,
            output=result.stdout,
        )

    def _write_local_log(self, output: str) -> None:
        log_file = self.config.local_log
        log_file.parent.mkdir(parents=True, exist_ok=True)
        log_file.write_text(output, encoding="utf-8")
        logger.debug(f"Wrote remote output to {log_file}")

    def _print_remote_log_tail(self, session: SSHSession, plan: RemotePlan) -> None:
        self.console.print("[bold][INFO][/bold] 📋 Attempting to print remote log tail:")
        session.run(plan.log_tail_script(), allow_fail=True)
