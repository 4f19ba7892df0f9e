"""Ejecutor de fetch saliente (httpx).

Fase de ejecución:
- Siempre pasa por el control de admisión antes de tocar la red.
- Verifica que httpx conectaría al mismo host que se admitió (los parsers de
  URL difieren en casos raros, p.ej. backslashes en la autoridad).
- Libera la respuesta en todos los caminos (`async with client.stream`).
- Reporta éxito/fallo sobre el span correspondiente.
"""

from __future__ import annotations

import base64

import httpx

from core.config import AppSettings
from core.domain.errors import ResponseTooLargeError
from core.domain.models import (
    AdmissionDecision,
    FailureKind,
    Failure,
    FetchOutcome,
    FetchRequest,
    ImageBody,
    TextBody,
)
from core.interfaces.fetcher import UrlFetcher
from core.interfaces.tracing import Tracer, TraceSpan
from core.logs import get_logger
from core.services.admission import REASON_MALFORMED, REASON_NOT_ALLOWED, AdmissionControl
from core.services.spans import (
    SPAN_KIND_CLIENT,
    TAG_COMPONENT,
    TAG_HTTP_STATUS,
    TAG_PEER_ADDRESS,
    TAG_SPAN_KIND,
    BorrowedSpan,
    OwnedSpan,
)

IMAGE_OPERATION = "/image"
COMPONENT = "httpx"

_log = get_logger("fetcher")


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _decode(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class ProxyFetcher(UrlFetcher):
    """Implementación de `UrlFetcher` sobre un `httpx.AsyncClient` compartido."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        admission: AdmissionControl,
        tracer: Tracer,
        settings: AppSettings | None = None,
    ) -> None:
        self._client = client
        self._admission = admission
        self._tracer = tracer
        self._settings = settings or AppSettings()

    def admit(self, request: FetchRequest) -> AdmissionDecision:
        _log.info("fetch requested: %s", request.raw_url)
        decision = self._admission.check(request.raw_url)
        if not decision.allowed:
            return decision

        try:
            target = httpx.URL(request.raw_url).host.lower()
        except httpx.InvalidURL:
            _log.info("transport rejected admitted URL: %s", request.raw_url)
            return AdmissionDecision.deny(FailureKind.MALFORMED_INPUT, REASON_MALFORMED)
        if target != decision.normalized_host:
            _log.warning(
                "host mismatch between admission (%s) and transport (%s)",
                decision.normalized_host,
                target,
            )
            return AdmissionDecision.deny(FailureKind.FORBIDDEN, REASON_NOT_ALLOWED, host=target)
        return decision

    async def _read_body(self, response: httpx.Response) -> bytes:
        limit = self._settings.max_response_bytes
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) > limit:
                raise ResponseTooLargeError(limit)
        return bytes(buffer)

    async def fetch_text(self, request: FetchRequest, span: TraceSpan) -> FetchOutcome:
        borrowed = BorrowedSpan(span)
        decision = self.admit(request)
        if not decision.allowed:
            borrowed.note_error(decision.reason or "")
            return Failure(failure_kind=decision.failure_kind, message=decision.reason)

        borrowed.tag(TAG_PEER_ADDRESS, request.raw_url)
        borrowed.tag(TAG_COMPONENT, COMPONENT)
        headers = None
        if request.extra_header is not None:
            headers = {"Accept-Language": request.extra_header}

        try:
            async with self._client.stream("GET", request.raw_url, headers=headers) as response:
                borrowed.tag(TAG_HTTP_STATUS, response.status_code)
                body = await self._read_body(response)
                content = _decode(body, response.charset_encoding)
        except Exception as exc:
            message = _describe(exc)
            _log.warning("text fetch failed: %s", message, extra={"context": {"url": request.raw_url}})
            borrowed.fail(message)
            return Failure(failure_kind=FailureKind.UPSTREAM_ERROR, message=message)

        return TextBody(content=content)

    async def fetch_image(self, request: FetchRequest) -> FetchOutcome:
        decision = self.admit(request)
        if not decision.allowed:
            return Failure(failure_kind=decision.failure_kind, message=decision.reason)

        tags = {
            TAG_PEER_ADDRESS: request.raw_url,
            TAG_COMPONENT: COMPONENT,
            TAG_SPAN_KIND: SPAN_KIND_CLIENT,
        }
        with OwnedSpan(self._tracer, IMAGE_OPERATION, tags) as owned:
            try:
                async with self._client.stream("GET", request.raw_url) as response:
                    owned.tag(TAG_HTTP_STATUS, response.status_code)
                    if response.status_code != 200:
                        message = f"Failed to fetch image, HTTP code: {response.status_code}"
                        _log.warning("%s", message, extra={"context": {"url": request.raw_url}})
                        owned.fail(message)
                        return Failure(failure_kind=FailureKind.UPSTREAM_ERROR, message=message)
                    body = await self._read_body(response)
            except Exception as exc:
                message = _describe(exc)
                _log.warning("image fetch failed: %s", message, extra={"context": {"url": request.raw_url}})
                owned.fail(message)
                return Failure(failure_kind=FailureKind.UPSTREAM_ERROR, message=message)

        return ImageBody(payload=base64.b64encode(body).decode("ascii"))
