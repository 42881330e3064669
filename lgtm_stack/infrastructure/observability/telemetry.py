from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger as _root_logger
from opentelemetry import trace
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

TRACER_NAME = 'LGTM.Stack'


class TelemetryContext:
    """Logger, tracer and metrics handed to every demo endpoint."""

    def __init__(
        self,
        service_name: str,
        registry: CollectorRegistry | None = None,
        tracer: Tracer | None = None,
        logger: Any | None = None,
    ) -> None:
        self.service_name = service_name
        self.registry = registry or REGISTRY
        self.tracer = tracer or trace.get_tracer(TRACER_NAME)
        self.logger = (logger or _root_logger).bind(service=service_name)

        self.endpoint_requests = Counter(
            name='lgtm_endpoint_requests',
            documentation='Demo endpoint invocations',
            labelnames=['operation'],
            registry=self.registry,
        )
        self.cascade_calls = Counter(
            name='lgtm_cascade_calls',
            documentation='Cascading calls between demo endpoints',
            labelnames=['source', 'target', 'outcome'],
            registry=self.registry,
        )
        self.cascade_duration = Histogram(
            name='lgtm_cascade_call_duration_seconds',
            documentation='Duration of cascading calls between demo endpoints',
            labelnames=['source', 'target'],
            registry=self.registry,
        )
        self.loki_checks = Counter(
            name='lgtm_loki_checks',
            documentation='Loki connectivity checks by result',
            labelnames=['status'],
            registry=self.registry,
        )
        self.load_test_requests = Counter(
            name='lgtm_load_test_requests',
            documentation='Requests issued by the load injector',
            labelnames=['scenario', 'outcome'],
            registry=self.registry,
        )
        self.load_test_latency = Histogram(
            name='lgtm_load_test_request_duration_seconds',
            documentation='Latency observed by the load injector',
            labelnames=['scenario'],
            registry=self.registry,
        )

    def for_operation(self, operation: str) -> Any:
        """Logger bound to *operation* as the record event."""
        return self.logger.bind(event=operation)

    def record_invocation(self, operation: str) -> None:
        self.endpoint_requests.labels(operation).inc()
