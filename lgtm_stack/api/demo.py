"""
Demo endpoints producing logs, metrics and traces for the LGTM stack.

Each handler does something trivial, records telemetry, and may cascade into
the next endpoint before answering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry.trace import Status, StatusCode

from lgtm_stack.domain.common.errors import SimulatedFailureError
from lgtm_stack.domain.common.responses import ProblemResponse
from lgtm_stack.domain.common.utils import DateTimeUtils

if TYPE_CHECKING:
    from fastapi import Request

    from lgtm_stack.core.configs import TraceTargetConfiguration
    from lgtm_stack.domain.cascade import CascadeSimulator
    from lgtm_stack.domain.endpoints import EndpointRegistry
    from lgtm_stack.infrastructure.loki import LokiClient
    from lgtm_stack.infrastructure.observability import TelemetryContext

ROOT_MESSAGE = 'Hello World! Check your Grafana for logs and metrics.'
TEST_LOG_LEVELS = ['Information', 'Warning', 'Error']


def _timestamp() -> str:
    return DateTimeUtils.utcnow().isoformat()


class DemoEndpoints:
    def __init__(
        self,
        telemetry: TelemetryContext,
        cascade: CascadeSimulator,
        loki: LokiClient,
        client: httpx.AsyncClient,
        trace_target: TraceTargetConfiguration,
    ) -> None:
        self._telemetry = telemetry
        self._cascade = cascade
        self._loki = loki
        self._client = client
        self._trace_target = trace_target

    async def root(self, request: Request) -> str:
        self._telemetry.for_operation('root').info('Root endpoint accessed')
        await self._cascade.cascade('root', request)

        return ROOT_MESSAGE

    async def health(self, request: Request) -> dict[str, Any]:
        self._telemetry.for_operation('health').info('Health check requested')
        await self._cascade.cascade('health', request)

        return {'status': 'healthy', 'timestamp': _timestamp()}

    async def error(self, request: Request) -> Any:
        self._telemetry.for_operation('error').error(
            'Error endpoint accessed - simulating an error'
        )
        msg = 'This is a test error for logging'
        raise SimulatedFailureError(msg)

    async def test_logs(self, request: Request) -> dict[str, Any]:
        log = self._telemetry.for_operation('test-logs')
        log.info('Test log entry - Information level')
        log.warning('Test log entry - Warning level')
        log.error('Test log entry - Error level')

        await self._cascade.cascade('test-logs', request)

        return {
            'message': 'Test logs generated',
            'timestamp': _timestamp(),
            'levels': list(TEST_LOG_LEVELS),
        }

    async def loki_test(self, request: Request) -> Any:
        log = self._telemetry.for_operation('loki-test')
        log.info('Testing direct Loki connectivity from application')

        try:
            ready = await self._loki.is_ready()

        except httpx.HTTPError as e:
            log.opt(exception=e).error('Failed to connect to Loki')
            self._telemetry.loki_checks.labels('unreachable').inc()
            await self._cascade.cascade('loki-test', request)

            return ProblemResponse(detail='Failed to connect to Loki')

        status = 'accessible' if ready else 'not accessible'
        log.info('Loki status check: {}', status)
        self._telemetry.loki_checks.labels(status).inc()

        await self._cascade.cascade('loki-test', request)

        return {'lokiStatus': status, 'timestamp': _timestamp()}

    async def force_logs(self, request: Request) -> dict[str, Any]:
        log = self._telemetry.for_operation('force-logs')
        delivered = await self._push_direct_logs()

        log.info('Forced log test completed at {}', _timestamp())
        log.warning('This is a warning from the main application')
        log.error('This is an error from the main application')

        await self._cascade.cascade('force-logs', request)

        labels = ', '.join(
            f'{key}={value}' for key, value in self._loki.config.direct_labels.items()
        )
        return {
            'message': 'Direct logging test completed',
            'timestamp': _timestamp(),
            'instruction': (
                f'Check your Grafana Loki for logs with {labels} '
                f'and app={self._telemetry.service_name} labels'
            ),
            'directPush': 'delivered' if delivered else 'failed',
        }

    async def _push_direct_logs(self) -> bool:
        """Send a burst straight to Loki, bypassing the logging pipeline."""
        log = self._telemetry.for_operation('force-logs').bind(direct=True)
        entries = [
            ('info', f'Direct test log message {_timestamp()}'),
            ('warning', 'Test warning message'),
            ('error', 'Test error message'),
        ]
        for level, line in entries:
            log.log(level.upper(), line)

        try:
            await self._loki.push(entries)

        except httpx.HTTPError as e:
            log.warning('Direct Loki push failed: {}', e)
            return False

        log.info('Test logs sent to Loki. Check Grafana!')

        return True

    async def trace_test(self, request: Request) -> dict[str, Any]:
        log = self._telemetry.for_operation('trace-test')

        with self._telemetry.tracer.start_as_current_span('TraceTest') as span:
            span.set_attribute('test.type', 'manual')
            span.set_attribute('endpoint', 'trace-test')

            span_ctx = span.get_span_context()
            trace_id = f'{span_ctx.trace_id:032x}'
            span_id = f'{span_ctx.span_id:016x}'
            body: dict[str, Any] = {
                'message': 'Trace test completed',
                'traceId': trace_id,
                'spanId': span_id,
                'timestamp': _timestamp(),
                'instruction': 'Check your Grafana Tempo for traces',
            }

            log.info(
                'Starting trace test with activity ID: {}',
                f'00-{trace_id}-{span_id}-01',
            )

            try:
                response = await self._client.get(
                    str(self._trace_target.url), timeout=self._trace_target.timeout
                )

            except httpx.HTTPError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                log.opt(exception=e).error('Error during trace test')

                body['message'] = 'Trace test degraded'
                body['error'] = str(e) or type(e).__name__

            else:
                span.set_attribute('http.response_size', len(response.content))
                if response.is_success:
                    span.set_status(Status(StatusCode.OK))
                    log.info('Trace test completed successfully')
                else:
                    span.set_status(
                        Status(StatusCode.ERROR, f'HTTP {response.status_code}')
                    )
                    log.warning(
                        'Trace target answered with status {}', response.status_code
                    )

            await self._cascade.cascade('trace-test', request)

        return body


def register_demo_endpoints(
    registry: EndpointRegistry, endpoints: DemoEndpoints
) -> EndpointRegistry:
    registry.register('root', '/', endpoints.root, 'Greeting')
    registry.register('health', '/health', endpoints.health, 'Health status')
    registry.register('error', '/error', endpoints.error, 'Simulated failure')
    registry.register(
        'test-logs', '/test-logs', endpoints.test_logs, 'Logs at three levels'
    )
    registry.register(
        'loki-test', '/loki-test', endpoints.loki_test, 'Loki connectivity check'
    )
    registry.register(
        'force-logs', '/force-logs', endpoints.force_logs, 'Direct push to Loki'
    )
    registry.register(
        'trace-test', '/trace-test', endpoints.trace_test, 'Manual trace span'
    )

    return registry
