from __future__ import annotations

import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.domain.models import ImageBody, TextBody
from core.services.spans import TAG_ERROR, TAG_HTTP_HOST

PNG_ISH = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def upstream():
    """Upstream simulado: registra requests y responde según el path."""

    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/page":
            return httpx.Response(200, text="hello")
        if request.url.path == "/cat.jpg":
            return httpx.Response(200, content=PNG_ISH)
        if request.url.path == "/down":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404, text="nope")

    return seen, handler


@pytest.fixture
def api(settings, tracer, upstream):
    _, handler = upstream
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False)
    app = create_app(settings, client=http, tracer=tracer)
    with TestClient(app) as client:
        yield client


def test_text_route_returns_body_and_forwards_header(api, upstream, tracer):
    seen, _ = upstream

    response = api.get("/", params={"url": "http://example.com/page", "header": "de-DE"})

    assert response.status_code == 200
    assert response.text == "hello"
    assert response.headers["content-type"].startswith("text/plain")
    assert seen[0].headers["Accept-Language"] == "de-DE"

    (span,) = tracer.spans
    assert span.operation_name == "/"
    assert span.tags[TAG_HTTP_HOST] == "testserver"
    assert span.finish_count == 1


def test_text_route_forbidden_host(api, upstream, tracer):
    seen, _ = upstream

    response = api.get("/", params={"url": "http://evil.com/", "header": "en"})

    assert response.status_code == 403
    assert response.json() == {"detail": "domain not allowed"}
    assert seen == []
    assert tracer.spans[0].finish_count == 1


def test_text_route_malformed_url(api, upstream):
    seen, _ = upstream

    response = api.get("/", params={"url": "ftp://example.com/", "header": "en"})

    assert response.status_code == 400
    assert response.json() == {"detail": "invalid or unsupported URL format"}
    assert seen == []


def test_text_route_upstream_error_is_not_a_200(api, tracer):
    response = api.get("/", params={"url": "http://example.com/down", "header": "en"})

    assert response.status_code == 502
    assert response.json() == {"detail": "connection refused"}
    (span,) = tracer.spans
    assert span.tags[TAG_ERROR] is True
    assert span.finish_count == 1


def test_text_route_rejects_header_injection(api, upstream):
    seen, _ = upstream

    response = api.get("/", params={"url": "http://example.com/page", "header": "en\r\nX-Evil: 1"})

    assert response.status_code == 400
    assert seen == []


def test_text_route_rejects_non_ascii_header(api, upstream, tracer):
    seen, _ = upstream

    response = api.get("/", params={"url": "http://example.com/", "header": "fr-é"})

    assert response.status_code == 400
    assert response.json() == {"detail": "invalid request parameters"}
    assert seen == []
    assert tracer.spans == []


@pytest.mark.parametrize("params", [{"url": "http://example.com/page"}, {"header": "en"}])
def test_text_route_requires_both_parameters(api, params):
    assert api.get("/", params=params).status_code == 422


def test_image_route_returns_data_uri(api, tracer):
    response = api.get("/image", params={"url": "https://example.com/cat.jpg"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    prefix = "data:image/jpg;base64,"
    assert response.text.startswith(prefix)
    assert base64.b64decode(response.text[len(prefix):]) == PNG_ISH
    (span,) = tracer.spans
    assert span.operation_name == "/image"
    assert span.finish_count == 1


def test_image_route_non_200_is_server_error(api, tracer):
    response = api.get("/image", params={"url": "http://example.com/missing.jpg"})

    assert response.status_code == 502
    assert response.json() == {"detail": "Failed to fetch image, HTTP code: 404"}
    assert tracer.spans[0].finish_count == 1


def test_image_route_forbidden_host(api, upstream, tracer):
    seen, _ = upstream

    response = api.get("/image", params={"url": "http://api.example.com.evil.com/x.jpg"})

    assert response.status_code == 403
    assert seen == []
    assert tracer.spans == []


def test_healthz(api):
    assert api.get("/healthz").json() == {"status": "ok"}


class _MismatchedFetcher:
    """Devuelve el tipo de cuerpo equivocado para cada ruta."""

    async def fetch_text(self, request, span):
        return ImageBody(payload="")

    async def fetch_image(self, request):
        return TextBody(content="not an image")


@pytest.mark.parametrize(
    "path, params",
    [
        ("/", {"url": "http://example.com/page", "header": "en"}),
        ("/image", {"url": "http://example.com/cat.jpg"}),
    ],
)
def test_routes_reject_unexpected_outcome_type(api, path, params):
    api.app.state.fetcher = _MismatchedFetcher()

    response = api.get(path, params=params)

    assert response.status_code == 500
    assert response.json() == {"detail": "unexpected fetch outcome"}
