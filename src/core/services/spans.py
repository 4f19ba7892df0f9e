"""Variantes de span con alcance (prestado vs propio).

Por qué dos clases y no una:
- En la ruta de texto el span pertenece al llamador: aquí solo se etiqueta y,
  únicamente en el camino de error, se cierra de forma proactiva.
- En la ruta de imagen el span se crea aquí y su dueño siempre lo cierra,
  sea cual sea la salida (éxito, no-200 o excepción).
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Mapping

from core.interfaces.tracing import Tracer, TraceSpan

TAG_ERROR = "error"
TAG_PEER_ADDRESS = "peer.address"
TAG_COMPONENT = "component"
TAG_SPAN_KIND = "span.kind"
TAG_HTTP_STATUS = "http.status_code"
TAG_HTTP_HOST = "http.host"
SPAN_KIND_CLIENT = "client"


def mark_error(span: TraceSpan, message: str) -> None:
    span.set_tag(TAG_ERROR, True)
    span.log(message)


class BorrowedSpan:
    """Span del llamador: se etiqueta, y solo se cierra al fallar el upstream."""

    def __init__(self, span: TraceSpan) -> None:
        self._span = span

    @property
    def span(self) -> TraceSpan:
        return self._span

    def tag(self, key: str, value: Any) -> None:
        self._span.set_tag(key, value)

    def note_error(self, message: str) -> None:
        """Marca error sin cerrar (p.ej. rechazo de admisión)."""

        mark_error(self._span, message)

    def fail(self, message: str) -> None:
        """Marca error y cierra el span si el llamador aún no lo hizo."""

        mark_error(self._span, message)
        if not self._span.finished:
            self._span.finish()


class OwnedSpan:
    """Span creado localmente; `__exit__` lo cierra exactamente una vez."""

    def __init__(self, tracer: Tracer, operation_name: str, tags: Mapping[str, Any] | None = None) -> None:
        self._tracer = tracer
        self._operation_name = operation_name
        self._tags = dict(tags or {})
        self._span: TraceSpan | None = None

    @property
    def span(self) -> TraceSpan:
        if self._span is None:
            raise RuntimeError("span not started")
        return self._span

    def __enter__(self) -> "OwnedSpan":
        self._span = self._tracer.start_span(self._operation_name, self._tags)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        span = self.span
        if exc is not None:
            mark_error(span, str(exc) or exc.__class__.__name__)
        if not span.finished:
            span.finish()

    def tag(self, key: str, value: Any) -> None:
        self.span.set_tag(key, value)

    def fail(self, message: str) -> None:
        """Marca error; el cierre queda a cargo de `__exit__`."""

        mark_error(self.span, message)
