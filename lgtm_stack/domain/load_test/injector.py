from __future__ import annotations

import asyncio
import math
import random
import time
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from lgtm_stack.domain.common.utils import DateTimeUtils

from .models import LoadTestReport, LoadTestResult
from .report import write_report

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lgtm_stack.infrastructure.observability import TelemetryContext

    from .models import LoadTestScenario


class LoadInjector:
    """Constant-rate GET traffic against a menu of scenarios.

    Requests are started every ``1 / rate`` seconds without waiting for the
    previous one, so slow endpoints do not lower the injected rate. Nothing
    is started once ``duration`` has elapsed; requests still in flight at
    that point run to completion before the report is written.
    """

    def __init__(
        self,
        telemetry: TelemetryContext,
        report_dir: str | Path,
        scenario_name: str = 'api_load_test',
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._telemetry = telemetry
        self._log = telemetry.for_operation('load-test')
        self.report_dir = Path(report_dir)
        self.scenario_name = scenario_name
        self._request_timeout = request_timeout
        self._transport = transport
        self._rng = rng or random.Random()  # noqa: S311
        self.last_report_paths: list[Path] = []

    async def run_load(
        self,
        base_url: str,
        scenarios: Sequence[LoadTestScenario],
        rate_per_second: float,
        duration: float,
    ) -> LoadTestResult | None:
        """Run the load test; errors are logged and yield ``None``."""
        self._log.info('Starting load tests against {}', base_url)

        try:
            result = await self._inject(scenarios, rate_per_second, duration)
            report = LoadTestReport.from_result(result)
            self.last_report_paths = write_report(report, self.report_dir)

        except Exception as e:
            self._log.opt(exception=e).error('Error running load tests')
            return None

        self._log.info(
            'Load tests completed: {} requests, {} ok, {} failed, report at {}',
            result.requests,
            result.ok,
            result.failed,
            self.last_report_paths[0],
        )

        return result

    async def _inject(
        self,
        scenarios: Sequence[LoadTestScenario],
        rate: float,
        duration: float,
    ) -> LoadTestResult:
        if not scenarios:
            msg = 'at least one load test scenario is required'
            raise ValueError(msg)

        if rate <= 0 or duration <= 0:
            msg = f'rate and duration must be positive, got {rate} and {duration}'
            raise ValueError(msg)

        result = LoadTestResult(
            scenario_name=self.scenario_name,
            rate=rate,
            duration=duration,
            started_at=DateTimeUtils.now(),
        )
        total = math.floor(rate * duration + 1e-9)
        interval = 1 / rate
        in_flight: set[asyncio.Task[None]] = set()

        async with httpx.AsyncClient(
            transport=self._transport, timeout=self._request_timeout
        ) as client:
            loop = asyncio.get_running_loop()
            start = loop.time()

            for tick in range(total):
                delay = start + tick * interval - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)

                if loop.time() - start >= duration:
                    break

                scenario = self._rng.choice(scenarios)
                task = asyncio.create_task(self._fire(client, scenario, result))
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)

            if in_flight:
                await asyncio.gather(*in_flight)

        result.finished_at = DateTimeUtils.now()

        return result

    async def _fire(
        self,
        client: httpx.AsyncClient,
        scenario: LoadTestScenario,
        result: LoadTestResult,
    ) -> None:
        start = time.perf_counter()
        status: int | None

        try:
            response = await client.get(scenario.url)
            status = response.status_code

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._log.debug('Load request to {} failed: {}', scenario.url, e)
            status = None

        latency = time.perf_counter() - start
        ok = result.record(scenario.name, status, latency)

        self._telemetry.load_test_requests.labels(
            scenario.name, 'ok' if ok else 'failed'
        ).inc()
        self._telemetry.load_test_latency.labels(scenario.name).observe(latency)
