"""Loopback cascades and load runs against the in-process service."""

import httpx
import pytest
from conftest import SERVICE_HOST, FixedRandom, sample
from kink import di

from lgtm_stack.core.configs import CascadeConfiguration
from lgtm_stack.domain.cascade import CascadeSimulator
from lgtm_stack.domain.endpoints import EndpointRegistry
from lgtm_stack.domain.load_test import LoadInjector, build_scenarios
from lgtm_stack.infrastructure.observability import TelemetryContext

BASE_URL = f'http://{SERVICE_HOST}:8080'


@pytest.fixture
def config(config):
    return config.model_copy(
        update={'cascade': CascadeConfiguration(enabled=True, max_depth=3)}
    )


async def _get(app, path: str) -> httpx.Response:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url=BASE_URL
    ) as client:
        return await client.get(path)


async def test_cascade_chain_follows_the_cycle_until_depth_limit(app, registry):
    di[CascadeSimulator].rng = FixedRandom(1)

    response = await _get(app, '/')

    assert response.status_code == 200
    for operation in ('root', 'health', 'test-logs', 'loki-test'):
        assert (
            sample(registry, 'lgtm_endpoint_requests_total', operation=operation)
            == 1
        )
    assert (
        sample(registry, 'lgtm_endpoint_requests_total', operation='force-logs')
        == 0
    )


async def test_cascade_wraps_around_from_trace_test_to_root(app, registry, spans):
    di[CascadeSimulator].rng = FixedRandom(1)

    response = await _get(app, '/trace-test')

    assert response.status_code == 200
    assert sample(registry, 'lgtm_endpoint_requests_total', operation='root') == 1
    assert (
        sample(
            registry,
            'lgtm_cascade_calls_total',
            source='trace-test',
            target='root',
            outcome='success',
        )
        == 1
    )


async def test_cascade_never_changes_the_outer_response(app, transport):
    di[CascadeSimulator].rng = FixedRandom(1)
    transport.loki_down = True

    response = await _get(app, '/test-logs')

    assert response.status_code == 200
    assert response.json()['message'] == 'Test logs generated'


async def test_load_run_is_observed_by_the_request_counter(
    app, registry, transport, tmp_path
):
    di[CascadeSimulator].rng = FixedRandom(0)
    injector = LoadInjector(
        di[TelemetryContext],
        tmp_path / 'reports',
        transport=transport,
    )
    scenarios = build_scenarios(BASE_URL, di[EndpointRegistry])

    result = await injector.run_load(BASE_URL, scenarios, 10, 0.8)

    observed = sum(
        sample(registry, 'lgtm_endpoint_requests_total', operation=s.name)
        for s in scenarios
    )
    assert result.requests == observed == 8
    assert result.ok == 8
    assert injector.last_report_paths[0].exists()
