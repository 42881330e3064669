from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import Response
from kink import di, inject

from lgtm_stack.api import api_router
from lgtm_stack.core.config import Configuration
from lgtm_stack.core.logging import setup_logging
from lgtm_stack.domain.common.errors import SimulatedFailureError
from lgtm_stack.domain.common.responses import ProblemResponse
from lgtm_stack.domain.endpoints import EndpointRegistry
from lgtm_stack.infrastructure.observability import (
    TelemetryContext,
    configure_observability,
)
from lgtm_stack.infrastructure.startup import StartupTasks


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    startup = di[StartupTasks]
    startup.start()

    try:
        yield

    finally:
        await startup.stop()
        await di[httpx.AsyncClient].aclose()


async def simulated_failure_handler(request: Request, exc: Exception) -> Response:
    di[TelemetryContext].for_operation('error').opt(exception=exc).error(
        'Unhandled exception while processing {}', request.url.path
    )

    return ProblemResponse(detail=str(exc))


@inject
def get_application(
    config: Configuration, telemetry: TelemetryContext, registry: EndpointRegistry
) -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        debug=config.app_debug,
        description=config.app_description,
        docs_url='/docs' if config.docs_enabled else None,
        openapi_url='/openapi.json' if config.docs_enabled else None,
        redoc_url=None,
        title=config.app_name,
        version=config.app_version,
        lifespan=lifespan,
    )

    configure_observability(app, config, telemetry)

    app.add_exception_handler(SimulatedFailureError, simulated_failure_handler)

    # Include routers
    app.include_router(api_router)
    registry.mount(app)

    return app
