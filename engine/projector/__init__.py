"""
View Projection 모듈

Local Mirror 스냅샷 → 대시보드 집계
"""

from engine.projector.view_projection import (
    AccountRow,
    BalancePoint,
    CategoryBreakdown,
    DailyPoint,
    DashboardSnapshot,
    TransactionRow,
    project,
)

__all__ = [
    "AccountRow",
    "BalancePoint",
    "CategoryBreakdown",
    "DailyPoint",
    "DashboardSnapshot",
    "TransactionRow",
    "project",
]
