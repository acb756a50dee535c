"""
Rich formatting utilities for CLI output.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from updater_publish.core.config import PublishSettings
from updater_publish.core.detector import SystemInfo
from updater_publish.release.artifacts import ReleaseArtifacts
from updater_publish.remote.steps import RemotePlan

RULE = "━" * 65


def print_header(console: Console) -> None:
    """Print application header."""
    header_text = """
╔═══════════════════════════════════════════════════════════════╗
║                  Updater - App Publish                        ║
╚═══════════════════════════════════════════════════════════════╝
"""
    console.print(header_text, style="bold cyan")


def print_system_info(console: Console, system_info: SystemInfo, use_mux: bool) -> None:
    """Print the local system and how ssh connections will be made."""
    table = Table(title="Local System", show_header=False, box=None, padding=(0, 2))
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Operating System", system_info.os_type)
    table.add_row("Platform", escape(system_info.platform))
    table.add_row("Hostname", escape(system_info.hostname))
    table.add_row("Connection reuse", "ControlMaster" if use_mux else "off")

    console.print(table)
    console.print()


def print_publish_summary(
    console: Console,
    settings: PublishSettings,
    artifacts: ReleaseArtifacts,
) -> None:
    """Print what is about to be published and where."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("📌 Host", settings.ssh)
    table.add_row("📌 Port", str(settings.ssh_port))
    table.add_row("📌 Container", settings.container)
    table.add_row("📌 Path", settings.path)
    table.add_row("📌 Version", artifacts.version)
    table.add_row("📌 Installer", artifacts.installer_name)
    table.add_row("📌 Manifest", artifacts.manifest_name)

    console.print(table)
    console.print()


def print_step(console: Console, number: int, total: int, title: str) -> None:
    """Print the banner of one remote step."""
    console.print(RULE, style="dim")
    console.print(f"[bold][STEP {number}/{total}][/bold] {title}")
    console.print(RULE, style="dim")


def print_step_done(console: Console, message: str) -> None:
    console.print(f"[bold green]✅ {message}[/bold green]\n")


def print_plan(console: Console, plan: RemotePlan) -> None:
    """Show the remote scripts a publish would run."""
    console.print(f"[bold]Remote tmp dir:[/bold] {plan.tmp_dir}")
    for title, script in (
        ("Step 1: prepare", plan.prepare_script()),
        ("Step 3: publish", plan.publish_script()),
    ):
        console.print(f"\n[bold cyan]{title}[/bold cyan]")
        pretty = script.replace("; ", ";\n").replace(" && ", " &&\n  ")
        console.print(Syntax(pretty, "bash", word_wrap=True))
    console.print()


def print_success(console: Console, version: str, log_file: Optional[str] = None) -> None:
    """Print the final success panel."""
    body = f'Version "{version}" has been published to the update server.'
    if log_file:
        body += f"\n[dim]Remote output saved to {log_file}[/dim]"
    console.print(Panel(body, title="✅ PUBLISH SUCCESSFUL", border_style="green", expand=False))
    console.print()


def print_failure(console: Console, error: str) -> None:
    """Print the final failure panel."""
    console.print()
    panel = Panel(
        f"[bold]Error:[/bold] {escape(error)}",
        title="❌ PUBLISH FAILED",
        border_style="red",
        expand=False,
    )
    console.print(panel)
    console.print()
