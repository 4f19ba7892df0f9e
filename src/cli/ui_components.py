"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import AppSettings
from core.domain.models import AdmissionDecision, Failure


def print_banner(console: Console) -> None:
    title = Text("SSRF-PROXY", style="bold cyan")
    subtitle = Text("Fetch por allow-list • Trazas • Sin redirects", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_decision_table(url: str, decision: AdmissionDecision) -> Table:
    """Tabla con el resultado del control de admisión para una URL."""

    table = Table(title="Admission")
    table.add_column("URL", style="magenta")
    table.add_column("Allowed", style="green")
    table.add_column("Host", style="cyan")
    table.add_column("Reason", style="red")
    table.add_row(
        url,
        "yes" if decision.allowed else "no",
        decision.normalized_host or "-",
        decision.reason or "",
    )
    return table


def build_settings_table(settings: AppSettings) -> Table:
    table = Table(title="Effective configuration")
    table.add_column("Setting", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("allowed_hosts", ", ".join(sorted(settings.allow_list().hosts)) or "(empty)")
    table.add_row("http_timeout_seconds", f"{settings.http_timeout_seconds:g}")
    table.add_row("max_response_bytes", str(settings.max_response_bytes))
    table.add_row("user_agent", settings.user_agent)
    table.add_row("listen", f"{settings.host}:{settings.port}")
    return table


def build_failure_panel(failure: Failure) -> Panel:
    body = Text(failure.message)
    title = Text(failure.failure_kind.value, style="bold red")
    return Panel(body, title=title, border_style="red")
