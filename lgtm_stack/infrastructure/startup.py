"""
Work scheduled once the service is accepting connections: open the API docs
in a browser and run the synthetic load test.
"""

from __future__ import annotations

import asyncio
import webbrowser
from typing import TYPE_CHECKING

import httpx

from lgtm_stack.domain.load_test import build_scenarios

if TYPE_CHECKING:
    from lgtm_stack.core.config import Configuration
    from lgtm_stack.domain.endpoints import EndpointRegistry
    from lgtm_stack.domain.load_test import LoadInjector
    from lgtm_stack.infrastructure.observability import TelemetryContext

LIVENESS_PATH = '/health/liveness'


class ServiceReadiness:
    """Completes once the service answers its liveness probe over HTTP.

    The FastAPI lifespan starts before the server binds its socket, so the
    probe is polled until it succeeds instead of trusting a fixed delay.
    """

    def __init__(
        self,
        probe_url: str,
        client: httpx.AsyncClient,
        timeout: float = 30.0,
        interval: float = 0.1,
    ) -> None:
        self.probe_url = probe_url
        self._client = client
        self._timeout = timeout
        self._interval = interval
        self._ready = asyncio.Event()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark_ready(self) -> None:
        self._ready.set()

    async def wait(self) -> None:
        """Poll until ready; raises ``TimeoutError`` after ``timeout`` seconds."""
        async with asyncio.timeout(self._timeout):
            while not self._ready.is_set():
                if await self._probe():
                    self.mark_ready()
                    break

                await asyncio.sleep(self._interval)

    async def _probe(self) -> bool:
        try:
            response = await self._client.get(
                self.probe_url, timeout=max(self._interval * 10, 1.0)
            )
        except httpx.HTTPError:
            return False

        return response.is_success


def open_browser(url: str, telemetry: TelemetryContext) -> bool:
    log = telemetry.for_operation('startup')
    log.info('Opening browser to Swagger UI at {}', url)

    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        log.warning('Could not auto-open browser: {}', e)
        return False

    if not opened:
        log.warning('Could not auto-open browser: no runnable browser found')

    return opened


class StartupTasks:
    def __init__(
        self,
        config: Configuration,
        registry: EndpointRegistry,
        telemetry: TelemetryContext,
        injector: LoadInjector,
        readiness: ServiceReadiness,
    ) -> None:
        self._config = config
        self._registry = registry
        self._telemetry = telemetry
        self._injector = injector
        self.readiness = readiness
        self._task: asyncio.Task[None] | None = None

    @property
    def enabled(self) -> bool:
        return self._config.open_browser or self._config.load_test.enabled

    def start(self) -> asyncio.Task[None] | None:
        if self.enabled and self._task is None:
            self._task = asyncio.create_task(self.run(), name='startup-tasks')

        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return

        task, self._task = self._task, None
        task.cancel()

        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            self._telemetry.for_operation('startup').opt(exception=e).error(
                'Startup tasks failed'
            )

    async def run(self) -> None:
        log = self._telemetry.for_operation('startup')
        base_url = self._config.api.base_url

        try:
            await self.readiness.wait()
        except TimeoutError:
            log.error(
                'Service at {} did not become ready, skipping startup tasks',
                base_url,
            )
            return

        if self._config.open_browser and self._config.docs_enabled:
            await asyncio.to_thread(open_browser, f'{base_url}/docs', self._telemetry)

        if self._config.load_test.enabled:
            load_config = self._config.load_test
            await self._injector.run_load(
                base_url,
                build_scenarios(base_url, self._registry),
                load_config.rate,
                load_config.duration,
            )
