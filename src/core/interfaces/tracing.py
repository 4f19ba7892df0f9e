"""Contratos de trazado (spans).

Por qué Protocol:
- El Core solo necesita etiquetar, loguear y cerrar un span; no le importa
  qué tracer real hay detrás (exportadores y configuración quedan fuera).
- Permite sustituir el tracer por un espía en tests para contar `finish()`.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class TraceSpan(Protocol):
    """Unidad de trazado medible y etiquetable."""

    @property
    def finished(self) -> bool:
        ...

    def set_tag(self, key: str, value: Any) -> None:
        ...

    def log(self, message: str) -> None:
        ...

    def finish(self) -> None:
        ...


@runtime_checkable
class Tracer(Protocol):
    """Fábrica de spans propios (los que el llamador crea y cierra)."""

    def start_span(self, operation_name: str, tags: Mapping[str, Any] | None = None) -> TraceSpan:
        ...
