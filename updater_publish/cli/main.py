"""
Main CLI application using Typer.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import questionary
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from updater_publish.cli import formatters
from updater_publish.core.config import AppConfig, ConfigError, PublishSettings, load_settings
from updater_publish.publisher import Publisher, PublishFailed
from updater_publish.release.artifacts import ArtifactError, ReleaseArtifacts
from updater_publish.storage.logger import setup_logging

app = typer.Typer(
    name="updater-publish",
    help="Publish an installer and its update manifest into a remote container",
    add_completion=False,
)

console = Console()


def _init_context(
    project_dir: Optional[Path],
    local_log: Optional[Path],
    log_dir: Optional[Path],
    verbose: bool,
    timeout: Optional[int],
):
    """
    Build run options, configure logging and load connection settings.

    Exits with code 1 when the configuration is invalid.
    """
    try:
        config = AppConfig.from_sources(
            project_dir=project_dir,
            local_log=local_log,
            log_dir=log_dir,
            verbose=verbose,
            timeout=timeout,
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(part) for part in err.get("loc", ()))
            console.print(f"[bold red]❌ Invalid {escape(field)}: {escape(err['msg'])}[/bold red]")
        raise typer.Exit(1)
    logger = setup_logging(config.log_dir, config.verbose)

    try:
        settings = load_settings()
    except ConfigError as e:
        for message in e.messages:
            console.print(f"[bold red]❌ {escape(message)}[/bold red]")
            logger.error(message)
        raise typer.Exit(1)

    return config, settings, logger


def _preflight(publisher: Publisher, logger) -> ReleaseArtifacts:
    """Local checks; exits with code 1 before any remote action on failure."""
    try:
        return publisher.preflight()
    except (ArtifactError, PublishFailed) as e:
        console.print(f"[bold red]❌ {escape(str(e))}[/bold red]")
        logger.error(str(e))
        raise typer.Exit(1)


def _confirm(settings: PublishSettings, artifacts: ReleaseArtifacts) -> bool:
    """Ask before touching the remote host when running in a terminal."""
    if not sys.stdin.isatty():
        return True
    try:
        answer = questionary.confirm(
            f"Publish {artifacts.version} to {settings.container} on {settings.ssh}?",
            default=True,
        ).unsafe_ask()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(130)
    return bool(answer)


@app.callback(invoke_without_command=True)
def _default(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    Updater publish tool.
    Configure the target with UPDATER_* environment variables (or a .env file).
    """
    if version:
        from updater_publish import __version__
        console.print(f"updater-publish {__version__}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


@app.command()
def publish(
    project_dir: Optional[Path] = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Project directory containing package.json and release/ (default: current directory)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Where to save the output of the final remote step (default: publish-last.log)",
    ),
    log_dir: Optional[Path] = typer.Option(
        None,
        "--log-dir",
        help="Also write rotating debug logs to this directory",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Timeout in seconds for each ssh/scp call (default: none)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """
    Upload the current release and replace it inside the container.
    """
    config, settings, logger = _init_context(project_dir, log_file, log_dir, verbose, timeout)
    publisher = Publisher(settings, config, console=console)
    artifacts = _preflight(publisher, logger)

    formatters.print_header(console)
    formatters.print_publish_summary(console, settings, artifacts)

    if not yes and not _confirm(settings, artifacts):
        logger.warning("User cancelled publish")
        raise typer.Exit(1)

    try:
        result = publisher.publish(artifacts)
    except PublishFailed:
        raise typer.Exit(1)

    formatters.print_success(console, result.version, str(result.log_file))


@app.command()
def check(
    project_dir: Optional[Path] = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Project directory containing package.json and release/ (default: current directory)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """
    Validate configuration and artifacts and show the remote plan without running it.
    """
    config, settings, logger = _init_context(project_dir, None, None, verbose, None)
    publisher = Publisher(settings, config, console=console)
    artifacts = _preflight(publisher, logger)

    formatters.print_header(console)
    formatters.print_system_info(console, publisher.system_info, publisher.create_session().use_mux)
    formatters.print_publish_summary(console, settings, artifacts)
    formatters.print_plan(console, publisher.build_plan(artifacts))
    console.print("[bold green]✓ Configuration and artifacts look good[/bold green]")
