"""Rich console utilities for protosdk.

This module provides a shared Rich Console instance and helper functions
for CLI output, with GitHub Actions annotations when running in CI.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from ._generation.result import GenerationReport

# Detect CI environments
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"
IS_GITLAB_CI = os.getenv("GITLAB_CI") == "true"
IS_CI = os.getenv("CI") == "true" or IS_GITHUB_ACTIONS or IS_GITLAB_CI

# Banner gradient for local terminals
BRAND_COLORS_HEX = {
    "blue": "#2F6FDE",
    "teal": "#1F9FB5",
    "green": "#2FB67C",
    "lime": "#8CC43F",
}

# Theme-adaptive colors for CI logs (works in both light and dark mode)
BRAND_COLORS_ADAPTIVE = {
    "blue": "blue",
    "teal": "cyan",
    "green": "green",
    "lime": "bright_green",
}

BRAND_COLORS = BRAND_COLORS_ADAPTIVE if IS_CI else BRAND_COLORS_HEX

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "step": "bold blue",
        "highlight": "magenta",
    }
)

# Shared console instance
# Force colors ON in GitHub Actions (it supports ANSI colors but Rich may incorrectly disable them)
console = Console(
    theme=custom_theme,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def print_banner(version: str = "unknown") -> None:
    """Print the protosdk banner with gradient colors."""
    banner = Text()
    banner.append("                 _              _ _    \n", style=BRAND_COLORS["blue"])
    banner.append(" _ __  _ __ ___ | |_ ___  ___  __| | | __\n", style=BRAND_COLORS["blue"])
    banner.append("| '_ \\| '__/ _ \\| __/ _ \\/ __|/ _` | |/ /\n", style=BRAND_COLORS["teal"])
    banner.append("| |_) | | | (_) | || (_) \\__ \\ (_| |   < \n", style=BRAND_COLORS["green"])
    banner.append("| .__/|_|  \\___/ \\__\\___/|___/\\__,_|_|\\_\\\n", style=BRAND_COLORS["lime"])
    banner.append("|_|\n", style=BRAND_COLORS["lime"])
    # Only prefix with 'v' if version looks like semver (starts with digit)
    version_display = f"v{version}" if version and version[0:1].isdigit() else version
    banner.append(f" {version_display}", style=BRAND_COLORS["green"])
    banner.append(" - Client SDKs from your .proto files\n", style=BRAND_COLORS["teal"])

    console.print(banner)


def gha_warning(message: str, title: Optional[str] = None) -> None:
    """
    Emit a warning that appears in GitHub Actions job summary.

    Args:
        message: Warning message
        title: Optional title for the warning
    """
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::warning title={title}::{message}")
        else:
            print(f"::warning::{message}")
    else:
        if title:
            console.print(f"[warning]Warning ({title}):[/warning] {message}")
        else:
            console.print(f"[warning]Warning:[/warning] {message}")


def gha_error(message: str, title: Optional[str] = None) -> None:
    """
    Emit an error that appears in GitHub Actions job summary.

    Args:
        message: Error message
        title: Optional title for the error
    """
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::error title={title}::{message}")
        else:
            print(f"::error::{message}")
    else:
        if title:
            console.print(f"[error]Error ({title}):[/error] {message}")
        else:
            console.print(f"[error]Error:[/error] {message}")


def print_summary_table(
    title: str,
    data: List[Tuple[str, Any]],
    show_if_empty: bool = False,
) -> None:
    """
    Print a summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
        show_if_empty: Whether to show the table if all values are 0/empty
    """
    # Filter out zero/empty values unless show_if_empty is True
    if not show_if_empty:
        data = [(label, value) for label, value in data if value]

    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, value in data:
        table.add_row(label, str(value))

    console.print(table)


def print_generation_summary(report: GenerationReport) -> None:
    """
    Print the outcome of an SDK generation run.

    Args:
        report: Report returned by the orchestrator
    """
    data: List[Tuple[str, Any]] = [
        ("SDK", report.sdk),
        ("Output directory", report.output.output_path),
        ("Files", report.output.files_count),
    ]
    if report.documentation is not None:
        data.append(("Documentation", report.documentation.output_path))

    print_summary_table("SDK Generation Summary", data, show_if_empty=True)

    if report.documentation_error:
        gha_warning(report.documentation_error, title="Documentation not generated")


def print_generators_table(generators: List[Dict[str, Any]]) -> None:
    """Print registered generators as returned by GeneratorRegistry.list_generators()."""
    table = Table(title="Registered Generators", show_header=True, header_style="bold")
    table.add_column("SDK", style="cyan")
    table.add_column("Directory")
    table.add_column("Command")

    for generator in generators:
        table.add_row(generator["sdk"], generator["dir_name"], generator["command"])

    console.print(table)


def print_tools_table(statuses: Dict[str, Any]) -> None:
    """Print external tool availability as returned by check_all_tools()."""
    table = Table(title="External Tools", show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Path")
    table.add_column("Required for")

    for status in statuses.values():
        state = "[success]✓ found[/success]" if status.available else "[error]✗ missing[/error]"
        required_for = ", ".join(status.info.required_for) if status.info else ""
        table.add_row(status.name, state, status.path or "", required_for)

    console.print(table)


def print_final_success(message: str = "SDK generation completed successfully.") -> None:
    """Print final success message."""
    console.print()
    if IS_GITHUB_ACTIONS:
        console.print(f"[bold green]✓ SUCCESS![/bold green] {message}")
    else:
        console.rule("[bold green]SUCCESS[/bold green]", style="green")
        console.print(f"[bold green]{message}[/bold green]", justify="center")
    console.print()


def print_final_failure(message: str) -> None:
    """Print final failure message."""
    console.print()
    gha_error(message, title="SDK Generation Failed")
    if not IS_GITHUB_ACTIONS:
        console.rule("[bold red]FAILED[/bold red]", style="red")
        console.print(f"[bold red]{message}[/bold red]", justify="center")
    console.print()
