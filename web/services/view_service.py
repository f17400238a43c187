"""
View 서비스

View Projection 결과를 API 응답 스키마로 변환.
"""

from decimal import Decimal

from core.domain.models import Category
from engine.command.models import CommandResult
from engine.projector.view_projection import (
    AccountRow,
    DailyPoint,
    DashboardSnapshot,
    TransactionRow,
)
from engine.reconciler.drift import BalanceDrift
from web.models.responses import (
    AccountResponse,
    BalancePointResponse,
    CategoryBreakdownResponse,
    CategoryResponse,
    CommandResponse,
    DailyPointResponse,
    DashboardResponse,
    DriftResponse,
    TransactionResponse,
)

# 대시보드에 포함할 최근 거래 수
DASHBOARD_RECENT_TRANSACTIONS = 10


def _money(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def account_response(row: AccountRow) -> AccountResponse:
    return AccountResponse(
        id=row.id,
        name=row.name,
        type=row.type,
        type_label=row.type_label,
        balance=str(row.balance),
        color=row.color,
        transaction_count=row.transaction_count,
    )


def category_response(category: Category) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        name=category.name,
        type=category.type,
        color=category.color,
    )


def transaction_response(row: TransactionRow) -> TransactionResponse:
    return TransactionResponse(
        id=row.id,
        date=row.date.isoformat(),
        type=row.type,
        amount=str(row.amount),
        signed_amount=_money(row.signed_amount),
        description=row.description,
        account_label=row.account_label,
        category_label=row.category_label,
        color=row.color,
    )


def command_response(result: CommandResult) -> CommandResponse:
    return CommandResponse(
        operation_id=result.operation_id,
        transaction_id=result.transaction_id,
        state=result.state,
        deltas={d.account_id: str(d.delta) for d in result.deltas},
        warnings=list(result.warnings),
    )


def _daily(point: DailyPoint) -> DailyPointResponse:
    return DailyPointResponse(
        date=point.date.isoformat(),
        income=str(point.income),
        expense=str(point.expense),
        net=str(point.net),
    )


def dashboard_response(view: DashboardSnapshot) -> DashboardResponse:
    """대시보드 응답 구성"""
    return DashboardResponse(
        total_balance=str(view.total_balance),
        period_income=str(view.period_income),
        period_expense=str(view.period_expense),
        expense_by_category={k: str(v) for k, v in view.expense_by_category.items()},
        daily_series=[_daily(p) for p in view.daily_series],
        recent_series=[_daily(p) for p in view.recent_series],
        expense_breakdown=[
            CategoryBreakdownResponse(
                category_id=b.category_id,
                name=b.name,
                color=b.color,
                amount=str(b.amount),
            )
            for b in view.expense_breakdown
        ],
        balance_trend=[
            BalancePointResponse(date=p.date.isoformat(), balance=str(p.balance))
            for p in view.balance_trend
        ],
        accounts=[account_response(r) for r in view.account_rows],
        recent_transactions=[
            transaction_response(r)
            for r in view.transaction_rows[:DASHBOARD_RECENT_TRANSACTIONS]
        ],
    )


def drift_response(drift: BalanceDrift) -> DriftResponse:
    return DriftResponse(
        account_id=drift.account_id,
        account_name=drift.account_name,
        expected=str(drift.expected),
        actual=str(drift.actual),
        difference=str(drift.difference),
    )
