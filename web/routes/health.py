"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.config.loader import Settings
from web.dependencies import get_app_settings, get_registry
from web.models.responses import HealthResponse
from web.sessions import SessionRegistry

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    registry: SessionRegistry = Depends(get_registry),
) -> HealthResponse:
    """서버 상태 확인"""
    return HealthResponse(
        status="ok",
        mode=settings.mode.value,
        version=API_VERSION,
        active_sessions=len(registry),
    )
