"""Output formatting utilities"""

from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...constants import EMOJI_ERROR, EMOJI_INFO, EMOJI_SUCCESS, EMOJI_WARNING
from ...core.release_registry import ReleaseInfo
from ...exceptions import UsageError
from ...models import BuildResult, DeployRecord, DeployResult

console = Console()


def _result_lines(result, lines: List[str]) -> List[str]:
    for warning in result.warnings:
        lines.append(f"[yellow]{EMOJI_WARNING} {warning}[/yellow]")
    if result.duration is not None:
        lines.append(f"[dim]Duration: {result.duration:.1f}s[/dim]")
    return lines


def format_build_result(result: BuildResult) -> None:
    """Format and display build result"""
    if result.is_skipped:
        console.print(f"[blue]{result.message}[/blue]")
        return

    if result.is_success:
        lines = [
            f"[green]{EMOJI_SUCCESS}[/green] {result.application} version {result.version} built",
            "",
            f"[bold]Release:[/bold] {result.release_path}",
        ]
        if result.package_zip:
            lines.append(f"[bold]Package:[/bold] {result.package_zip.name}")
        lines.append(f"[bold]Notified:[/bold] {'yes' if result.notified else 'no'}")
        console.print(Panel("\n".join(_result_lines(result, lines)), title="Build Result", border_style="green"))
        return

    lines = [f"[red]{EMOJI_ERROR} Build of {result.application} failed:[/red] {result.error}"]
    if result.workspace:
        lines.append(f"[bold]Workspace kept:[/bold] {result.workspace}")
    for path in result.log_files:
        lines.append(f"[bold]Log:[/bold] {path}")
    console.print(Panel("\n".join(_result_lines(result, lines)), title="Build Error", border_style="red"))


def format_deploy_result(result: DeployResult) -> None:
    """Format and display deploy result"""
    target = result.environment_nickname or "-"
    if result.server:
        target = f"{target} ({result.server})"

    if result.is_success:
        lines = [
            f"[green]{EMOJI_SUCCESS}[/green] {result.application} version {result.version} deployed",
            "",
            f"[bold]Target:[/bold] {target}",
        ]
        if result.database_server:
            lines.append(f"[bold]Database server:[/bold] {result.database_server}")
        console.print(Panel("\n".join(_result_lines(result, lines)), title="Deploy Result", border_style="green"))
        return

    lines = [
        f"[red]{EMOJI_ERROR} Deploy failed:[/red] {result.error}",
        f"[bold]Target:[/bold] {target}",
        f"[bold]History recorded:[/bold] {'yes' if result.history_recorded else 'no'}",
    ]
    for path in result.log_files:
        lines.append(f"[bold]Log:[/bold] {path}")
    console.print(Panel("\n".join(_result_lines(result, lines)), title="Deploy Error", border_style="red"))


def format_release_list(releases: Sequence[ReleaseInfo]) -> None:
    """Format and display release list"""
    if not releases:
        console.print("[yellow]No releases found[/yellow]")
        return

    table = Table(title="Releases", box=box.SIMPLE)
    table.add_column("Application", style="cyan")
    table.add_column("Version", style="green", justify="right")
    table.add_column("Created", style="dim")

    for release in releases:
        table.add_row(release.application, str(release.version), release.created_at.strftime("%Y-%m-%d %H:%M"))

    console.print(table)


def format_history(records: Sequence[DeployRecord]) -> None:
    """Format and display deploy history"""
    if not records:
        console.print("[yellow]No deploy history found[/yellow]")
        return

    table = Table(title="Deploy History", box=box.SIMPLE)
    for header in ("Date", "Application", "Environment", "Server", "Version", "User", "Result"):
        table.add_column(header)

    for record in records:
        outcome = f"[green]{EMOJI_SUCCESS}[/green]" if record.success else f"[red]{EMOJI_ERROR}[/red]"
        table.add_row(
            record.to_dict()["date"],
            record.application,
            record.environment_nickname,
            record.server,
            str(record.version) if record.version is not None else "-",
            record.user,
            outcome,
        )

    console.print(table)


def format_current_versions(application: str, versions: Dict[str, int]) -> None:
    """Format and display current version per environment"""
    if not versions:
        console.print(f"[yellow]{application} is not deployed anywhere yet[/yellow]")
        return

    table = Table(title=f"{application} current versions", box=box.SIMPLE)
    table.add_column("Environment", style="cyan")
    table.add_column("Version", style="green", justify="right")
    for nickname, version in versions.items():
        table.add_row(nickname, str(version))
    console.print(table)


def print_usage_error(error: UsageError) -> None:
    """Print a usage error with the valid values, if known"""
    console.print(f"[red]Error:[/red] {error}")
    if error.valid_values:
        console.print("[bold]Valid values:[/bold]")
        for value in error.valid_values:
            console.print(f"  • {value}")


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]Error:[/red] {message}: {str(error)}")
    else:
        console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message"""
    console.print(f"[blue]{EMOJI_INFO}[/blue] {message}")


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[green]Success:[/green] {message}")
