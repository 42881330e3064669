import random
from collections.abc import Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from kink import di
from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from prometheus_client import CollectorRegistry

from lgtm_stack.core.config import Configuration
from lgtm_stack.core.configs import (
    CascadeConfiguration,
    LoadTestConfiguration,
    LogConfiguration,
    ObservabilityConfiguration,
)
from lgtm_stack.core.container import wire_dependencies
from lgtm_stack.infrastructure.observability import TelemetryContext

SERVICE_HOST = '127.0.0.1'
TRACE_TARGET_BODY = 'Design for failure.'


class FixedRandom(random.Random):
    """Every draw returns *value*."""

    def __init__(self, value: int) -> None:
        super().__init__(0)
        self.value = value

    def randrange(self, *args, **kwargs) -> int:  # type: ignore[override]
        return self.value


class ServiceTransport(httpx.AsyncBaseTransport):
    """Routes loopback calls to the app in-process and fakes external hosts."""

    def __init__(self) -> None:
        self.app: FastAPI | None = None
        self.loki_ready_status = 200
        self.loki_push_status = 204
        self.loki_down = False
        self.trace_target_down = False
        self.requests: list[httpx.Request] = []
        self._asgi: httpx.ASGITransport | None = None

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == SERVICE_HOST:
            if self._asgi is None:
                self._asgi = httpx.ASGITransport(app=self.app)
            return await self._asgi.handle_async_request(request)

        if host == 'localhost' and request.url.port == 3100:
            if self.loki_down:
                msg = 'connection refused'
                raise httpx.ConnectError(msg, request=request)
            if request.url.path == '/ready':
                return httpx.Response(self.loki_ready_status, text='ready')
            return httpx.Response(self.loki_push_status)

        if host == 'api.github.com':
            if self.trace_target_down:
                msg = 'timed out'
                raise httpx.ConnectTimeout(msg, request=request)
            return httpx.Response(200, text=TRACE_TARGET_BODY)

        return httpx.Response(404)

    def to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture(scope='session')
def span_exporter() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    return exporter


@pytest.fixture
def spans(span_exporter: InMemorySpanExporter) -> Iterator[InMemorySpanExporter]:
    span_exporter.clear()
    yield span_exporter
    span_exporter.clear()


@pytest.fixture
def config(tmp_path) -> Configuration:
    return Configuration(
        app_environment='test',
        open_browser=False,
        log=LogConfiguration(json_console=False, to_loki=False, to_file=False),
        observability=ObservabilityConfiguration(enabled=False),
        cascade=CascadeConfiguration(enabled=False),
        load_test=LoadTestConfiguration(
            enabled=False, report_dir=str(tmp_path / 'reports')
        ),
    )


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def telemetry(registry: CollectorRegistry) -> TelemetryContext:
    return TelemetryContext('lgtm-stack', registry=registry)


@pytest.fixture
def transport() -> ServiceTransport:
    return ServiceTransport()


@pytest.fixture
def app(
    config: Configuration, registry: CollectorRegistry, transport: ServiceTransport
) -> FastAPI:
    wire_dependencies(config, registry, transport=transport)
    transport.app = di[FastAPI]

    return transport.app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def sample(registry: CollectorRegistry, name: str, **labels: str) -> float:
    return registry.get_sample_value(name, labels) or 0.0


@pytest.fixture
def log_records() -> Iterator[list[dict]]:
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record))
    yield records
    logger.remove(handler_id)
