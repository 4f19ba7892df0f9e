"""Aplicación FastAPI: rutas `/` (texto) e `/image` (data URI base64).

Mapeo de errores:
- MalformedInput -> 400
- Forbidden      -> 403
- UpstreamError  -> 502
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from adapters.http_client import build_async_client
from adapters.proxy_fetcher import ProxyFetcher
from adapters.tracing import LoggingTracer
from core.config import AppSettings
from core.domain.models import Failure, FailureKind, FetchOutcome, FetchRequest, ImageBody, TextBody
from core.interfaces.tracing import Tracer
from core.logs import get_logger
from core.services.admission import AdmissionControl
from core.services.spans import TAG_HTTP_HOST

STATUS_BY_FAILURE: dict[FailureKind, int] = {
    FailureKind.MALFORMED_INPUT: 400,
    FailureKind.FORBIDDEN: 403,
    FailureKind.UPSTREAM_ERROR: 502,
}

_log = get_logger("api")

router = APIRouter()


def _build_request(url: str, header: str | None = None) -> FetchRequest:
    try:
        return FetchRequest(raw_url=url, extra_header=header)
    except ValidationError as exc:
        _log.info("rejected request parameters: %s", exc.errors()[0]["msg"])
        raise HTTPException(status_code=400, detail="invalid request parameters") from exc


def _http_error(outcome: FetchOutcome) -> HTTPException:
    if isinstance(outcome, Failure):
        return HTTPException(status_code=STATUS_BY_FAILURE[outcome.failure_kind], detail=outcome.message)
    _log.error("unexpected fetch outcome: %s", outcome.kind)
    return HTTPException(status_code=500, detail="unexpected fetch outcome")


def _fetcher(request: Request) -> ProxyFetcher:
    return request.app.state.fetcher


@router.get("/", response_class=PlainTextResponse)
async def proxy_text(
    request: Request,
    url: str = Query(..., description="URL a traer como texto."),
    header: str = Query(..., description="Valor reenviado como Accept-Language."),
    host: str = Header(...),
) -> PlainTextResponse:
    fetch_request = _build_request(url, header)
    tracer: Tracer = request.app.state.tracer
    span = tracer.start_span("/", {TAG_HTTP_HOST: host})
    try:
        outcome = await _fetcher(request).fetch_text(fetch_request, span)
    finally:
        if not span.finished:
            span.finish()

    if isinstance(outcome, TextBody):
        return PlainTextResponse(outcome.content)
    raise _http_error(outcome)


@router.get("/image")
async def proxy_image(
    request: Request,
    url: str = Query(..., description="URL de la imagen a traer."),
) -> Response:
    """Trae una imagen y devuelve su representación base64.

    WARNING: nunca se comprueba que lo traído sea realmente una imagen.
    """

    outcome = await _fetcher(request).fetch_image(_build_request(url))
    if isinstance(outcome, ImageBody):
        return Response(content=outcome.data_uri, media_type="image/jpeg")
    raise _http_error(outcome)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


def create_app(
    settings: AppSettings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    tracer: Tracer | None = None,
) -> FastAPI:
    """Construye la app con un cliente HTTP de proceso.

    Si se inyecta `client`, su ciclo de vida pertenece al llamador.
    """

    settings = settings or AppSettings()
    tracer = tracer or LoggingTracer()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http = client or build_async_client(settings)
        admission = AdmissionControl(settings.allow_list())
        app.state.fetcher = ProxyFetcher(http, admission, tracer, settings)
        _log.info("proxy ready; %d allow-listed hosts", len(admission.allow_list))
        try:
            yield
        finally:
            if client is None:
                await http.aclose()

    app = FastAPI(title="ssrf-proxy", lifespan=lifespan)
    app.state.tracer = tracer
    app.include_router(router)
    return app
