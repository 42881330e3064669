from zoneinfo import ZoneInfo

import httpx
from fastapi import FastAPI
from kink import di
from prometheus_client import REGISTRY, CollectorRegistry

from lgtm_stack.api import DemoEndpoints, register_demo_endpoints
from lgtm_stack.core.application import get_application
from lgtm_stack.core.config import Configuration, get_config
from lgtm_stack.domain.cascade import CascadeSimulator
from lgtm_stack.domain.common.utils import StringUtils
from lgtm_stack.domain.endpoints import EndpointRegistry
from lgtm_stack.domain.load_test import LoadInjector
from lgtm_stack.infrastructure.loki import LokiClient
from lgtm_stack.infrastructure.observability import TelemetryContext
from lgtm_stack.infrastructure.startup import (
    LIVENESS_PATH,
    ServiceReadiness,
    StartupTasks,
)


def wire_dependencies(
    config: Configuration | None = None,
    registry: CollectorRegistry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Build the object graph. *transport* replaces outbound networking."""
    _wire_core_dependencies(config)
    _wire_infrastructure_dependencies(registry, transport)
    _wire_services(transport)

    di[FastAPI] = lambda _: get_application()  # type: ignore[call-arg]


# noinspection PyArgumentList
def _wire_core_dependencies(config: Configuration | None) -> None:
    """Wire core application dependencies."""
    di[Configuration] = config or get_config()
    di[ZoneInfo] = ZoneInfo(di[Configuration].app_timezone)


def _wire_infrastructure_dependencies(
    registry: CollectorRegistry | None, transport: httpx.AsyncBaseTransport | None
) -> None:
    config = di[Configuration]

    di[CollectorRegistry] = registry or REGISTRY
    di[TelemetryContext] = TelemetryContext(
        StringUtils.service_name(), registry=di[CollectorRegistry]
    )
    di[httpx.AsyncClient] = httpx.AsyncClient(
        transport=transport, timeout=httpx.Timeout(10.0), follow_redirects=True
    )
    di[LokiClient] = LokiClient(config.loki, di[httpx.AsyncClient])


def _wire_services(transport: httpx.AsyncBaseTransport | None) -> None:
    config = di[Configuration]
    telemetry = di[TelemetryContext]
    client = di[httpx.AsyncClient]

    di[EndpointRegistry] = EndpointRegistry(telemetry)
    di[CascadeSimulator] = CascadeSimulator(
        di[EndpointRegistry],
        telemetry,
        client,
        config.api.base_url,
        timeout=config.cascade.timeout,
        max_depth=config.cascade.max_depth,
        enabled=config.cascade.enabled,
    )
    di[DemoEndpoints] = DemoEndpoints(
        telemetry, di[CascadeSimulator], di[LokiClient], client, config.trace_target
    )
    register_demo_endpoints(di[EndpointRegistry], di[DemoEndpoints])

    di[LoadInjector] = LoadInjector(
        telemetry,
        config.load_test.report_dir,
        scenario_name=config.load_test.scenario_name,
        request_timeout=config.load_test.request_timeout,
        transport=transport,
    )
    di[ServiceReadiness] = ServiceReadiness(
        f'{config.api.base_url}{LIVENESS_PATH}',
        client,
        timeout=config.load_test.readiness_timeout,
    )
    di[StartupTasks] = StartupTasks(
        config,
        di[EndpointRegistry],
        telemetry,
        di[LoadInjector],
        di[ServiceReadiness],
    )
