from __future__ import annotations

from typing import Any, Callable, Mapping

import httpx
import pytest

from adapters.http_client import build_async_client
from adapters.proxy_fetcher import ProxyFetcher
from adapters.tracing import LoggingTracer, RecordingSpan
from core.config import AppSettings
from core.services.admission import AdmissionControl


class SpyTracer(LoggingTracer):
    """Tracer que guarda cada span creado para inspeccionar su ciclo de vida."""

    def __init__(self) -> None:
        self.spans: list[RecordingSpan] = []

    def start_span(self, operation_name: str, tags: Mapping[str, Any] | None = None) -> RecordingSpan:
        span = super().start_span(operation_name, tags)
        self.spans.append(span)
        return span


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, allowed_hosts=["example.com", "api.example.com"])


@pytest.fixture
def tracer() -> SpyTracer:
    return SpyTracer()


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_fetcher(
    settings: AppSettings, tracer: SpyTracer
) -> Callable[..., ProxyFetcher]:
    def _make(client: httpx.AsyncClient, **overrides: Any) -> ProxyFetcher:
        effective = settings.model_copy(update=overrides) if overrides else settings
        return ProxyFetcher(client, AdmissionControl(effective.allow_list()), tracer, effective)

    return _make


@pytest.fixture
async def client(settings: AppSettings):
    async with build_async_client(settings) as http:
        yield http


@pytest.fixture
async def counting_client(settings: AppSettings, recorded_requests: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return httpx.Response(200, text="should never be served")

    async with build_async_client(settings, transport=httpx.MockTransport(handler)) as http:
        yield http
