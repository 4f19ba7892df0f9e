"""Control de admisión de URLs (anti-SSRF).

Decide si una URL puede llegar al transporte HTTP *antes* de cualquier I/O.

Reglas:
- Filtro sintáctico: esquema http/https + autoridad no vacía + path opcional.
  No excluye loopback/link-local/redes privadas por sí solo.
- Autorización: el hostname literal debe estar en el allow-list
  (case-insensitive). Sin resolución DNS ni inspección de IPs.
- Nunca lanza: todo rechazo es un `AdmissionDecision` negativo.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from core.domain.models import AdmissionDecision, AllowList, FailureKind
from core.logs import get_logger

URL_SHAPE = re.compile(r"(https?://)[^/]+(/.*)?")

REASON_BAD_SHAPE = "invalid or unsupported URL format"
REASON_MALFORMED = "malformed URL"
REASON_NOT_ALLOWED = "domain not allowed"

_log = get_logger("admission")


def extract_host(raw_url: str) -> str | None:
    """Host en minúsculas, o None si la URL no es parseable.

    Accede a `port` a propósito: urlsplit solo valida el puerto de forma perezosa.
    """

    try:
        parts = urlsplit(raw_url)
        parts.port
    except ValueError:
        return None
    return parts.hostname or None


def admit(raw_url: str, allow_list: AllowList) -> AdmissionDecision:
    if not isinstance(raw_url, str) or URL_SHAPE.fullmatch(raw_url) is None:
        return AdmissionDecision.deny(FailureKind.MALFORMED_INPUT, REASON_BAD_SHAPE)

    host = extract_host(raw_url)
    if host is None:
        return AdmissionDecision.deny(FailureKind.MALFORMED_INPUT, REASON_MALFORMED)

    if not allow_list.contains(host):
        return AdmissionDecision.deny(FailureKind.FORBIDDEN, REASON_NOT_ALLOWED, host=host)

    return AdmissionDecision.allow(host)


class AdmissionControl:
    """Envuelve `admit` con un allow-list inyectado (solo lectura)."""

    def __init__(self, allow_list: AllowList) -> None:
        self._allow_list = allow_list

    @property
    def allow_list(self) -> AllowList:
        return self._allow_list

    def check(self, raw_url: str) -> AdmissionDecision:
        decision = admit(raw_url, self._allow_list)
        if not decision.allowed:
            _log.info(
                "admission denied: %s",
                decision.reason,
                extra={"context": {"url": raw_url, "host": decision.normalized_host}},
            )
        return decision
