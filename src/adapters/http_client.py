"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, límites de conexión y política de redirects.
- Facilita testeo: se puede inyectar un `transport` (p.ej. `httpx.MockTransport`).

Nota: el cliente es de proceso (se crea al arrancar y se reutiliza); httpx
lo permite compartir entre tareas concurrentes.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué sin redirects:
    - Un 3xx hacia otro host saltaría el control de admisión; el cliente
      recibe la respuesta de redirect tal cual.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=False,
        headers=headers,
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
        transport=transport,
    )
