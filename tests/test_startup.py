import asyncio
import webbrowser

import httpx
import pytest

from lgtm_stack.core.configs import LoadTestConfiguration
from lgtm_stack.infrastructure.startup import (
    LIVENESS_PATH,
    ServiceReadiness,
    StartupTasks,
)

PROBE_URL = f'http://127.0.0.1:8080{LIVENESS_PATH}'


class RecordingInjector:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def run_load(self, base_url, scenarios, rate_per_second, duration):
        self.calls.append((base_url, scenarios, rate_per_second, duration))


def _readiness(handler, **kwargs) -> ServiceReadiness:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ServiceReadiness(PROBE_URL, client, interval=0.01, **kwargs)


def _tasks(config, telemetry, readiness, injector) -> StartupTasks:
    return StartupTasks(config, None, telemetry, injector, readiness)


@pytest.fixture
def load_config(config):
    return config.model_copy(
        update={
            'load_test': LoadTestConfiguration(enabled=True, rate=5, duration=2)
        }
    )


async def test_readiness_polls_until_probe_succeeds():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            msg = 'connection refused'
            raise httpx.ConnectError(msg, request=request)
        return httpx.Response(200, json={'status': 'alive'})

    readiness = _readiness(handler, timeout=5)

    await readiness.wait()

    assert readiness.is_ready
    assert len(attempts) == 3
    assert str(attempts[0].url) == PROBE_URL


async def test_readiness_times_out():
    readiness = _readiness(lambda r: httpx.Response(503), timeout=0.1)

    with pytest.raises(TimeoutError):
        await readiness.wait()

    assert not readiness.is_ready


async def test_startup_runs_load_once_ready(load_config, telemetry):
    injector = RecordingInjector()
    readiness = _readiness(lambda r: httpx.Response(200), timeout=5)

    await _tasks(load_config, telemetry, readiness, injector).run()

    ((base_url, scenarios, rate, duration),) = injector.calls
    assert base_url == 'http://127.0.0.1:8080'
    assert len(scenarios) == 6
    assert (rate, duration) == (5, 2)


async def test_startup_skipped_when_service_never_ready(load_config, telemetry):
    injector = RecordingInjector()
    readiness = _readiness(lambda r: httpx.Response(503), timeout=0.1)

    await _tasks(load_config, telemetry, readiness, injector).run()

    assert injector.calls == []


async def test_start_is_a_noop_when_nothing_to_do(config, telemetry):
    readiness = _readiness(lambda r: httpx.Response(200))
    tasks = _tasks(config, telemetry, readiness, RecordingInjector())

    assert not tasks.enabled
    assert tasks.start() is None
    await tasks.stop()


async def test_stop_cancels_pending_startup(load_config, telemetry):
    injector = RecordingInjector()
    readiness = _readiness(lambda r: httpx.Response(503), timeout=30)
    tasks = _tasks(load_config, telemetry, readiness, injector)

    task = tasks.start()
    assert task is not None

    await tasks.stop()

    assert task.cancelled()
    assert injector.calls == []


@pytest.fixture
def browser_config(load_config):
    return load_config.model_copy(update={'open_browser': True})


@pytest.mark.parametrize('outcome', [False, webbrowser.Error('no display')])
async def test_browser_failure_is_a_warning_and_load_still_runs(
    browser_config, telemetry, monkeypatch, log_records, outcome
):
    opened: list[str] = []

    def fake_open(url: str) -> bool:
        opened.append(url)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(webbrowser, 'open', fake_open)
    injector = RecordingInjector()
    readiness = _readiness(lambda r: httpx.Response(200), timeout=5)

    await _tasks(browser_config, telemetry, readiness, injector).run()

    assert opened == ['http://127.0.0.1:8080/docs']
    warnings = [r['message'] for r in log_records if r['level'].name == 'WARNING']
    assert any('Could not auto-open browser' in message for message in warnings)
    assert len(injector.calls) == 1


async def test_browser_skipped_when_docs_are_disabled(
    browser_config, telemetry, monkeypatch
):
    opened: list[str] = []
    monkeypatch.setattr(webbrowser, 'open', lambda url: opened.append(url) or True)
    config = browser_config.model_copy(update={'app_environment': 'prod'})
    readiness = _readiness(lambda r: httpx.Response(200), timeout=5)

    await _tasks(config, telemetry, readiness, RecordingInjector()).run()

    assert opened == []


async def test_stop_logs_a_failed_startup_instead_of_raising(
    load_config, telemetry, log_records
):
    class FailingInjector:
        async def run_load(self, *args):
            msg = 'load run exploded'
            raise RuntimeError(msg)

    readiness = _readiness(lambda r: httpx.Response(200), timeout=5)
    tasks = _tasks(load_config, telemetry, readiness, FailingInjector())

    task = tasks.start()
    while not task.done():
        await asyncio.sleep(0.01)

    await tasks.stop()

    errors = [r for r in log_records if r['level'].name == 'ERROR']
    assert any(r['message'] == 'Startup tasks failed' for r in errors)
    assert isinstance(errors[-1]['exception'].value, RuntimeError)
