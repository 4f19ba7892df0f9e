"""Contrato del ejecutor de fetch saliente.

Reglas de diseño:
- Ambas operaciones son asíncronas porque hacen I/O (HTTP).
- Nunca lanzan por fallos esperables: devuelven un `FetchOutcome`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import FetchOutcome, FetchRequest
from core.interfaces.tracing import TraceSpan


@runtime_checkable
class UrlFetcher(Protocol):
    async def fetch_text(self, request: FetchRequest, span: TraceSpan) -> FetchOutcome:
        """Trae la URL como texto usando un span prestado por el llamador."""

        ...

    async def fetch_image(self, request: FetchRequest) -> FetchOutcome:
        """Trae la URL como bytes en base64 bajo un span propio `/image`."""

        ...
