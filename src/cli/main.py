"""CLI de ssrf-proxy (Typer).

Comandos:
- serve: levanta la API HTTP (uvicorn).
- check: solo control de admisión, sin red.
- fetch / image: fetch puntual a través del mismo ejecutor que usa la API.
- doctor: diagnóstico de configuración.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from adapters.http_client import build_async_client
from adapters.proxy_fetcher import ProxyFetcher
from adapters.tracing import LoggingTracer
from cli import doctor
from cli.ui_components import build_decision_table, build_failure_panel, print_banner
from core.config import AppSettings
from core.domain.models import Failure, FetchOutcome, FetchRequest, ImageBody, TextBody
from core.logs import setup_logging
from core.services.admission import AdmissionControl

app = typer.Typer(no_args_is_help=True, help="Forwarding proxy with SSRF admission control.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _settings() -> AppSettings:
    settings = AppSettings()
    setup_logging(level=settings.log_level, json_logs=settings.json_logs)
    return settings


async def _fetch(settings: AppSettings, request: FetchRequest, *, image: bool) -> FetchOutcome:
    tracer = LoggingTracer()
    async with build_async_client(settings) as client:
        fetcher = ProxyFetcher(client, AdmissionControl(settings.allow_list()), tracer, settings)
        if image:
            return await fetcher.fetch_image(request)
        span = tracer.start_span("cli")
        try:
            return await fetcher.fetch_text(request, span)
        finally:
            if not span.finished:
                span.finish()


def _build_request(url: str, header: str | None = None) -> FetchRequest:
    try:
        return FetchRequest(raw_url=url, extra_header=header)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _emit(outcome: FetchOutcome) -> None:
    if isinstance(outcome, Failure):
        _console.print(build_failure_panel(outcome))
        raise typer.Exit(code=1)
    if isinstance(outcome, ImageBody):
        typer.echo(outcome.data_uri)
    elif isinstance(outcome, TextBody):
        typer.echo(outcome.content, nl=False)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Interfaz de escucha (por defecto: config)."),
    port: int | None = typer.Option(None, "--port", help="Puerto (por defecto: config)."),
) -> None:
    """Levanta la API HTTP con uvicorn."""

    import uvicorn

    from api.app import create_app

    settings = _settings()
    print_banner(_console)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def check(url: str = typer.Argument(..., help="URL a evaluar.")) -> None:
    """Evalúa el control de admisión sin hacer I/O de red."""

    settings = _settings()
    decision = AdmissionControl(settings.allow_list()).check(url)
    _console.print(build_decision_table(url, decision))
    if not decision.allowed:
        raise typer.Exit(code=1)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL a traer como texto."),
    header: str | None = typer.Option(None, "--header", help="Valor para Accept-Language."),
) -> None:
    """Trae una URL permitida y la imprime como texto."""

    settings = _settings()
    _emit(asyncio.run(_fetch(settings, _build_request(url, header), image=False)))


@app.command()
def image(url: str = typer.Argument(..., help="URL de la imagen.")) -> None:
    """Trae una imagen permitida y la imprime como data URI base64."""

    settings = _settings()
    _emit(asyncio.run(_fetch(settings, _build_request(url), image=True)))


def run() -> None:
    app()
