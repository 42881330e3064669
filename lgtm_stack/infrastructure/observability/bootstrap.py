from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.jaeger import JaegerPropagator
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider, sampling
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace.propagation.tracecontext import (
    TraceContextTextMapPropagator,
)
from prometheus_fastapi_instrumentator import Instrumentator

from lgtm_stack.core.logging import get_logger
from lgtm_stack.domain.common.utils import StringUtils

if TYPE_CHECKING:
    from fastapi import FastAPI
    from opentelemetry.sdk.trace.sampling import Sampler

    from lgtm_stack.core.config import Configuration

    from .telemetry import TelemetryContext

logger = get_logger(__name__)


# noinspection HttpUrlsUsage
def _setup_tracing(config: Configuration) -> None:
    """Setup distributed tracing with OpenTelemetry."""
    if config.observability.tracing_sample_ratio >= 1.0:
        sampler: Sampler = sampling.ALWAYS_ON

    elif config.observability.tracing_sample_ratio <= 0.0:
        sampler = sampling.ALWAYS_OFF

    else:
        sampler = sampling.TraceIdRatioBased(config.observability.tracing_sample_ratio)

    resource = Resource.create(
        {
            'service.environment': config.app_environment,
            'service.name': StringUtils.service_name(),
            'service.version': config.app_version,
            'service.namespace': config.app_environment,
            'service.instance.id': (
                f'{StringUtils.service_name()}-{config.app_environment}'
            ),
            'deployment.environment': config.app_environment,
        }
    )

    provider = TracerProvider(
        sampler=sampler,
        resource=resource,
    )

    endpoint = str(config.observability.traces_endpoint)
    if not endpoint.startswith('http'):
        endpoint = f'http://{endpoint}'

    # OTLP exporter for Tempo
    otlp_exporter = OTLPSpanExporter(
        endpoint=endpoint,
        insecure=True,
        headers={},
        timeout=30,
    )

    provider.add_span_processor(
        BatchSpanProcessor(
            otlp_exporter,
            max_queue_size=2048,
            max_export_batch_size=512,
            export_timeout_millis=30000,
            schedule_delay_millis=5000,
        )
    )

    if config.observability.traces_to_console:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    # W3C first so cascade calls between our own endpoints join one trace
    set_global_textmap(
        CompositePropagator(
            [
                TraceContextTextMapPropagator(),
                JaegerPropagator(),
                B3MultiFormat(),
            ]
        )
    )

    HTTPXClientInstrumentor().instrument()

    logger.info('Tracing exported to {}', endpoint)


def _setup_metrics(app: FastAPI, telemetry: TelemetryContext) -> None:
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_round_latency_decimals=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            '/health/liveness',
            '/metrics',
            '/docs',
            '/openapi.json',
            '/redoc',
            '/favicon.ico',
        ],
        registry=telemetry.registry,
    )

    instrumentator.instrument(app)


def _setup_fastapi_instrumentation(app: FastAPI, config: Configuration) -> None:
    """Setup FastAPI-specific instrumentation."""
    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls=config.observability.excluded_urls,
        tracer_provider=trace.get_tracer_provider(),
        http_capture_headers_server_request=[
            'content-type',
            'user-agent',
            'x-cascade-depth',
        ],
        http_capture_headers_server_response=[
            'content-type',
            'content-length',
        ],
    )


def configure_observability(
    app: FastAPI, config: Configuration, telemetry: TelemetryContext
) -> None:
    """Configure complete observability stack for the application."""
    if not config.observability.enabled:
        return

    _setup_tracing(config)
    _setup_metrics(app, telemetry)
    _setup_fastapi_instrumentation(app, config)
