"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from cli.ui_components import build_settings_table
from core.config import AppSettings
from core.services.admission import admit

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def check_allow_list(settings: AppSettings) -> list[tuple[str, bool, str]]:
    """Self-check: every allow-listed host must admit its own root URL."""

    allow_list = settings.allow_list()
    results: list[tuple[str, bool, str]] = []
    for host in sorted(allow_list.hosts):
        decision = admit(f"https://{host}/", allow_list)
        results.append((host, decision.allowed, decision.reason or "OK"))
    return results


@app.command()
def run() -> None:
    """Show the effective configuration and validate the allow-list."""

    settings = AppSettings()
    _console.print(build_settings_table(settings))

    table = Table(title="Allow-list self-check")
    table.add_column("Host", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    results = check_allow_list(settings)
    if not results:
        table.add_row("-", "FAIL", "No hosts configured: every request will be rejected")
    for host, ok, detail in results:
        table.add_row(host, "OK" if ok else "FAIL", detail)
    _console.print(table)

    if not results or not all(ok for _, ok, _ in results):
        raise typer.Exit(code=1)
