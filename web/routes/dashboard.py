"""
대시보드 라우트

GET /api/dashboard         - 총 잔고, 기간 수입/지출, 카테고리별 지출, 일별 흐름
GET /api/dashboard/drift   - 잔고 불일치 계좌
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from engine.session import SessionContext
from web.dependencies import get_session
from web.models.responses import DashboardResponse, DriftResponse
from web.services.view_service import dashboard_response, drift_response

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    start: date | None = Query(default=None, description="기간 시작일 (포함)"),
    end: date | None = Query(default=None, description="기간 종료일 (포함)"),
    ctx: SessionContext = Depends(get_session),
) -> DashboardResponse:
    return dashboard_response(ctx.dashboard(start=start, end=end))


@router.get("/drift", response_model=list[DriftResponse])
async def get_drift(
    ctx: SessionContext = Depends(get_session),
) -> list[DriftResponse]:
    return [drift_response(d) for d in ctx.detect_drift()]
