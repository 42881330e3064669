from fastapi import APIRouter
from fastapi.responses import Response
from kink import di
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from lgtm_stack.infrastructure.observability import TelemetryContext

router = APIRouter(prefix='/metrics', tags=['observability'])


@router.get('')
async def get_metrics() -> Response:
    """Get all metrics in Prometheus format."""
    telemetry = di[TelemetryContext]

    return Response(
        content=generate_latest(telemetry.registry), media_type=CONTENT_TYPE_LATEST
    )
