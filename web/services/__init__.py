"""
Web 서비스 패키지

View Projection 결과 → API 응답 변환
"""

from web.services.view_service import (
    account_response,
    category_response,
    command_response,
    dashboard_response,
    drift_response,
    transaction_response,
)

__all__ = [
    "account_response",
    "category_response",
    "command_response",
    "dashboard_response",
    "drift_response",
    "transaction_response",
]
