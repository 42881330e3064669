from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lgtm_stack.domain.endpoints import EndpointRegistry

# Endpoints exercised by the load run, in report order.
LOAD_TEST_ENDPOINTS: tuple[tuple[str, str], ...] = (
    ('root', 'Root endpoint load test'),
    ('health', 'Health endpoint load test'),
    ('test-logs', 'Test logs endpoint load test'),
    ('loki-test', 'Loki test endpoint load test'),
    ('force-logs', 'Force logs endpoint load test'),
    ('trace-test', 'Trace test endpoint load test'),
)


@dataclass(frozen=True)
class LoadTestScenario:
    name: str
    url: str
    description: str


def build_scenarios(
    base_url: str, registry: EndpointRegistry | None = None
) -> tuple[LoadTestScenario, ...]:
    """Scenario menu for the load run, one per demo endpoint."""
    base_url = base_url.rstrip('/')
    scenarios = []

    for name, description in LOAD_TEST_ENDPOINTS:
        if registry is not None:
            url = registry.url_for(name, base_url)
        else:
            url = f'{base_url}/' if name == 'root' else f'{base_url}/{name}'

        scenarios.append(LoadTestScenario(name, url, description))

    return tuple(scenarios)


@dataclass
class ScenarioStats:
    """Counters for one scenario; latencies in seconds."""

    name: str
    requests: int = 0
    ok: int = 0
    failed: int = 0
    status_codes: dict[str, int] = field(default_factory=dict)
    latencies: list[float] = field(default_factory=list)

    def record(self, status: int | None, latency: float) -> bool:
        succeeded = status is not None and 200 <= status < 300
        key = str(status) if status is not None else 'error'

        self.requests += 1
        if succeeded:
            self.ok += 1
        else:
            self.failed += 1
        self.status_codes[key] = self.status_codes.get(key, 0) + 1
        self.latencies.append(latency)

        return succeeded


@dataclass
class LoadTestResult:
    scenario_name: str
    rate: float
    duration: float
    started_at: datetime
    finished_at: datetime | None = None
    scenarios: dict[str, ScenarioStats] = field(default_factory=dict)

    @property
    def requests(self) -> int:
        return sum(s.requests for s in self.scenarios.values())

    @property
    def ok(self) -> int:
        return sum(s.ok for s in self.scenarios.values())

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.scenarios.values())

    def record(self, scenario: str, status: int | None, latency: float) -> bool:
        stats = self.scenarios.setdefault(scenario, ScenarioStats(scenario))
        return stats.record(status, latency)


def percentile(values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile of *values*; ``0.0`` when empty."""
    if not values:
        return 0.0

    ordered = sorted(values)
    rank = max(math.ceil(pct / 100 * len(ordered)), 1)

    return ordered[rank - 1]


class LatencySummary(BaseModel):
    min_ms: float = 0.0
    mean_ms: float = 0.0
    max_ms: float = 0.0
    p50_ms: float = 0.0
    p75_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0

    @classmethod
    def from_latencies(cls, latencies: Sequence[float]) -> LatencySummary:
        if not latencies:
            return cls()

        def ms(value: float) -> float:
            return round(value * 1000, 2)

        return cls(
            min_ms=ms(min(latencies)),
            mean_ms=ms(sum(latencies) / len(latencies)),
            max_ms=ms(max(latencies)),
            p50_ms=ms(percentile(latencies, 50)),
            p75_ms=ms(percentile(latencies, 75)),
            p95_ms=ms(percentile(latencies, 95)),
            p99_ms=ms(percentile(latencies, 99)),
        )


class ScenarioReport(BaseModel):
    name: str
    requests: int
    ok: int
    failed: int
    status_codes: dict[str, int] = Field(default_factory=dict)
    latency: LatencySummary


class LoadTestReport(BaseModel):
    """Serialized form of a finished run."""

    scenario_name: str
    rate_per_second: float
    duration_seconds: float
    started_at: datetime
    finished_at: datetime
    requests: int
    ok: int
    failed: int
    requests_per_second: float
    latency: LatencySummary
    scenarios: list[ScenarioReport]

    @classmethod
    def from_result(cls, result: LoadTestResult) -> LoadTestReport:
        finished_at = result.finished_at or result.started_at
        elapsed = (finished_at - result.started_at).total_seconds()
        all_latencies = [
            latency
            for stats in result.scenarios.values()
            for latency in stats.latencies
        ]

        return cls(
            scenario_name=result.scenario_name,
            rate_per_second=result.rate,
            duration_seconds=result.duration,
            started_at=result.started_at,
            finished_at=finished_at,
            requests=result.requests,
            ok=result.ok,
            failed=result.failed,
            requests_per_second=(
                round(result.requests / elapsed, 2) if elapsed else 0.0
            ),
            latency=LatencySummary.from_latencies(all_latencies),
            scenarios=[
                ScenarioReport(
                    name=stats.name,
                    requests=stats.requests,
                    ok=stats.ok,
                    failed=stats.failed,
                    status_codes=dict(sorted(stats.status_codes.items())),
                    latency=LatencySummary.from_latencies(stats.latencies),
                )
                for stats in sorted(result.scenarios.values(), key=lambda s: s.name)
            ],
        )
