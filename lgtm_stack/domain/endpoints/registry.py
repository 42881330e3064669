from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from lgtm_stack.domain.common.errors import (
    DuplicateEndpointError,
    RegistryFrozenError,
    UnknownEndpointError,
)
from lgtm_stack.domain.common.responses import ProblemResponse

if TYPE_CHECKING:
    from fastapi import FastAPI

    from lgtm_stack.infrastructure.observability import TelemetryContext

Handler = Callable[[Request], Awaitable[Any]]


@dataclass(frozen=True)
class Endpoint:
    name: str
    path: str
    handler: Handler
    summary: str = ''


class EndpointRegistry:
    """Named demo routes, set up once and read-only while serving."""

    def __init__(self, telemetry: TelemetryContext) -> None:
        self._telemetry = telemetry
        self._by_name: dict[str, Endpoint] = {}
        self._by_path: dict[str, Endpoint] = {}
        self._frozen = False

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self, name: str, path: str, handler: Handler, summary: str = ''
    ) -> Endpoint:
        if self._frozen:
            msg = f'cannot register {name!r}: registry is already mounted'
            raise RegistryFrozenError(msg)

        if name in self._by_name:
            msg = f'endpoint name already registered: {name}'
            raise DuplicateEndpointError(msg)

        if path in self._by_path:
            msg = f'endpoint path already registered: {path}'
            raise DuplicateEndpointError(msg)

        endpoint = Endpoint(name=name, path=path, handler=handler, summary=summary)
        self._by_name[name] = endpoint
        self._by_path[path] = endpoint

        return endpoint

    def freeze(self) -> None:
        self._frozen = True

    def get(self, name: str) -> Endpoint:
        try:
            return self._by_name[name]
        except KeyError:
            msg = f'unknown endpoint: {name}'
            raise UnknownEndpointError(msg) from None

    def resolve(self, path: str) -> Endpoint | None:
        return self._by_path.get(path)

    def url_for(self, name: str, base_url: str) -> str:
        return f'{base_url.rstrip("/")}{self.get(name).path}'

    async def dispatch(self, path: str, request: Request) -> Response:
        endpoint = self.resolve(path)
        if endpoint is None:
            return ProblemResponse(
                detail=f'no endpoint registered for {path}', status_code=404
            )

        self._telemetry.record_invocation(endpoint.name)
        result = await endpoint.handler(request)

        return self._as_response(result)

    def mount(self, app: FastAPI) -> None:
        """Expose every endpoint as a ``GET`` route and freeze the registry."""
        for endpoint in self:
            app.add_api_route(
                endpoint.path,
                self._route_for(endpoint),
                methods=['GET'],
                response_model=None,
                name=endpoint.name,
                summary=endpoint.summary or None,
                tags=['demo'],
            )

        self.freeze()

    def _route_for(self, endpoint: Endpoint) -> Handler:
        async def route(request: Request) -> Response:
            return await self.dispatch(endpoint.path, request)

        route.__name__ = endpoint.name.replace('-', '_')

        return route

    @staticmethod
    def _as_response(result: Any) -> Response:
        if isinstance(result, Response):
            return result

        if isinstance(result, str):
            return PlainTextResponse(result)

        if isinstance(result, Mapping):
            return JSONResponse(dict(result))

        msg = f'unsupported handler result: {type(result).__name__}'
        raise TypeError(msg)
