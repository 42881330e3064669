from typing import Any

from fastapi import APIRouter

from lgtm_stack.domain.common.utils import DateTimeUtils

router = APIRouter(prefix='/health', tags=['health'])


@router.get('/liveness')
async def liveness_check() -> dict[str, Any]:
    """Simple liveness probe for container orchestration
    Returns 200 if the application is running. Never cascades.
    """
    return {
        'status': 'alive',
        'timestamp': DateTimeUtils.isoformat(),
    }
