"""Tracer en proceso basado en logging.

Por qué existe:
- La configuración de exportadores queda fuera del proyecto; este adaptador
  cumple el contrato `Tracer`/`TraceSpan` registrando tags/logs y emitiendo
  un log estructurado al cerrar cada span.
- Cuenta los `finish()` para detectar spans cerrados dos veces.
"""

from __future__ import annotations

import time
from typing import Any, Mapping

from core.logs import get_logger

_log = get_logger("tracing")


class RecordingSpan:
    def __init__(self, operation_name: str, tags: Mapping[str, Any] | None = None) -> None:
        self.operation_name = operation_name
        self.tags: dict[str, Any] = dict(tags or {})
        self.logs: list[str] = []
        self.finish_count = 0
        self._started = time.monotonic()
        self._duration: float | None = None

    @property
    def finished(self) -> bool:
        return self.finish_count > 0

    @property
    def duration_ms(self) -> float | None:
        if self._duration is None:
            return None
        return self._duration * 1000.0

    def set_tag(self, key: str, value: Any) -> None:
        self.tags[key] = value

    def log(self, message: str) -> None:
        self.logs.append(message)

    def finish(self) -> None:
        self.finish_count += 1
        if self.finish_count > 1:
            _log.warning("span %s finished %d times", self.operation_name, self.finish_count)
            return
        self._duration = time.monotonic() - self._started
        _log.debug(
            "span %s finished in %.1f ms",
            self.operation_name,
            self.duration_ms,
            extra={"context": {"tags": self.tags, "logs": self.logs}},
        )


class LoggingTracer:
    """Fábrica de `RecordingSpan`."""

    def start_span(self, operation_name: str, tags: Mapping[str, Any] | None = None) -> RecordingSpan:
        return RecordingSpan(operation_name, tags)
