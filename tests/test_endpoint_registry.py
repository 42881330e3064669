import json

import pytest
from conftest import sample
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from lgtm_stack.domain.common.errors import (
    DuplicateEndpointError,
    RegistryFrozenError,
    UnknownEndpointError,
)
from lgtm_stack.domain.endpoints import EndpointRegistry


def _request(path: str) -> Request:
    return Request(
        {
            'type': 'http',
            'method': 'GET',
            'path': path,
            'headers': [],
            'query_string': b'',
        }
    )


async def _hello(request: Request) -> str:
    return 'hello'


async def _payload(request: Request) -> dict:
    return {'path': request.url.path}


@pytest.fixture
def endpoints(telemetry) -> EndpointRegistry:
    registry = EndpointRegistry(telemetry)
    registry.register('hello', '/hello', _hello)
    registry.register('payload', '/payload', _payload)

    return registry


def test_register_and_lookup(endpoints):
    assert len(endpoints) == 2
    assert 'hello' in endpoints
    assert endpoints.get('hello').path == '/hello'
    assert endpoints.resolve('/payload').name == 'payload'
    assert endpoints.resolve('/missing') is None
    assert endpoints.url_for('hello', 'http://127.0.0.1:8080/') == (
        'http://127.0.0.1:8080/hello'
    )


def test_duplicate_name_or_path_is_rejected(endpoints):
    with pytest.raises(DuplicateEndpointError):
        endpoints.register('hello', '/other', _hello)

    with pytest.raises(DuplicateEndpointError):
        endpoints.register('other', '/hello', _hello)


def test_unknown_name(endpoints):
    with pytest.raises(UnknownEndpointError):
        endpoints.get('missing')


async def test_dispatch_converts_results(endpoints):
    text = await endpoints.dispatch('/hello', _request('/hello'))
    payload = await endpoints.dispatch('/payload', _request('/payload'))

    assert text.media_type == 'text/plain'
    assert text.body == b'hello'
    assert json.loads(payload.body) == {'path': '/payload'}


async def test_dispatch_unknown_path_is_not_found(endpoints, registry):
    response = await endpoints.dispatch('/missing', _request('/missing'))

    assert response.status_code == 404
    assert json.loads(response.body)['status'] == 404
    assert registry.get_sample_value('lgtm_endpoint_requests_total') is None


async def test_dispatch_counts_invocations(endpoints, registry):
    await endpoints.dispatch('/hello', _request('/hello'))
    await endpoints.dispatch('/hello', _request('/hello'))

    assert sample(registry, 'lgtm_endpoint_requests_total', operation='hello') == 2


def test_mount_exposes_routes_and_freezes(endpoints):
    app = FastAPI()
    endpoints.mount(app)

    with TestClient(app) as client:
        assert client.get('/hello').text == 'hello'
        assert client.get('/payload').json() == {'path': '/payload'}

    assert endpoints.frozen
    with pytest.raises(RegistryFrozenError):
        endpoints.register('late', '/late', _hello)
