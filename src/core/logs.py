"""Helpers de logging para nombres y configuración homogéneos.

Este módulo provee:
    - JsonLogFormatter: formato JSON compacto con campos estables y contexto opcional.
    - setup_logging: configuración (única) del logger base 'ssrf_proxy'.
    - get_logger: fábrica de loggers con namespace ('ssrf_proxy.*').

Por qué Rich por defecto:
- La CLI ya usa Rich; los logs humanos comparten el mismo render.
- En contenedores/pipelines se activa `json_logs` para logs parseables.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

BASE_LOGGER = "ssrf_proxy"


class JsonLogFormatter(logging.Formatter):
    """Emite logs como JSON compacto con un esquema fijo.

    Campos:
        - ts: timestamp ISO-8601 en UTC con milisegundos.
        - level: nombre del nivel.
        - module: nombre del logger (p.ej. 'ssrf_proxy.fetcher').
        - msg: mensaje formateado.
        - ctx: diccionario opcional adjunto al record como 'context'.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        ctx = getattr(record, "context", None)
        if isinstance(ctx, dict) and ctx:
            payload["ctx"] = ctx

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    *, level: int | str = logging.INFO, json_logs: bool = False, stream: TextIO | None = None
) -> logging.Logger:
    """Configura el logger base una sola vez y lo devuelve.

    Llamadas repetidas solo ajustan el nivel; no duplican handlers.
    """

    base = logging.getLogger(BASE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if base.handlers:
        base.setLevel(level)
        return base

    base.setLevel(level)
    base.propagate = False

    handler: logging.Handler
    if json_logs:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonLogFormatter())
    else:
        console = Console(file=stream, stderr=stream is None)
        handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
    base.addHandler(handler)
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """Devuelve un logger bajo el namespace 'ssrf_proxy'."""

    if not name or name == BASE_LOGGER:
        return logging.getLogger(BASE_LOGGER)
    if name.startswith(BASE_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{BASE_LOGGER}.{name}")
