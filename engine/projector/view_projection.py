"""
View Projection

Local Mirror 스냅샷에서 대시보드 집계와 렌더링용 행을 계산.
부수 효과 없는 순수 함수 (같은 입력 → 같은 출력).

- total_balance: 계좌 잔고 합계
- period_income / period_expense: 기간 내 수입/지출 합계 (이체 제외)
- expense_by_category: 카테고리별 지출 (누락 → "uncategorized")
- daily_series: 날짜 오름차순 일별 수입/지출/순증감
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from core.constants import Defaults, Endpoints, Labels
from core.domain.models import (
    Account,
    Category,
    ExpenseEntry,
    IncomeEntry,
    Transaction,
    TransferEntry,
)
from engine.mirror.local_mirror import MirrorSnapshot

ZERO = Decimal("0")


@dataclass(frozen=True)
class DailyPoint:
    """일별 현금 흐름"""

    date: date
    income: Decimal
    expense: Decimal
    net: Decimal


@dataclass(frozen=True)
class BalancePoint:
    """해당 날짜 종료 시점의 총 잔고"""

    date: date
    balance: Decimal


@dataclass(frozen=True)
class CategoryBreakdown:
    """카테고리별 지출 (차트 범례용)"""

    category_id: str
    name: str
    color: str
    amount: Decimal


@dataclass(frozen=True)
class TransactionRow:
    """거래 목록 행

    signed_amount는 이체이면 None.
    """

    id: str
    date: date
    type: str
    amount: Decimal
    signed_amount: Decimal | None
    description: str
    account_label: str
    category_label: str
    color: str


@dataclass(frozen=True)
class AccountRow:
    """계좌 목록 행"""

    id: str
    name: str
    type: str
    type_label: str
    balance: Decimal
    color: str
    transaction_count: int


@dataclass(frozen=True)
class DashboardSnapshot:
    """대시보드 집계 결과"""

    total_balance: Decimal
    period_income: Decimal
    period_expense: Decimal
    expense_by_category: dict[str, Decimal]
    daily_series: tuple[DailyPoint, ...]
    recent_series: tuple[DailyPoint, ...]
    expense_breakdown: tuple[CategoryBreakdown, ...]
    balance_trend: tuple[BalancePoint, ...]
    transaction_rows: tuple[TransactionRow, ...]
    account_rows: tuple[AccountRow, ...]


def in_period(tx: Transaction, start: date | None, end: date | None) -> bool:
    """기간 포함 여부 (양 끝 포함, None은 제한 없음)"""
    if start is not None and tx.date < start:
        return False
    if end is not None and tx.date > end:
        return False
    return True


def net_effect(tx: Transaction) -> Decimal:
    """전체 잔고 기준 순효과 (이체는 0)"""
    if isinstance(tx.entry, IncomeEntry):
        return tx.amount
    if isinstance(tx.entry, ExpenseEntry):
        return -tx.amount
    return ZERO


def account_label(account_id: str, accounts: dict[str, Account]) -> str:
    if account_id == Endpoints.EXTERNAL:
        return Labels.EXTERNAL
    account = accounts.get(account_id)
    return account.name if account else Labels.DELETED_ACCOUNT


def transaction_row(
    tx: Transaction,
    accounts: dict[str, Account],
    categories: dict[str, Category],
) -> TransactionRow:
    """거래 한 건을 렌더링 행으로 변환 (참조 누락 시 기본 라벨)"""
    entry = tx.entry

    if isinstance(entry, TransferEntry):
        return TransactionRow(
            id=tx.id,
            date=tx.date,
            type=tx.type,
            amount=tx.amount,
            signed_amount=None,
            description=tx.description,
            account_label=(
                f"{account_label(entry.from_account_id, accounts)} → "
                f"{account_label(entry.to_account_id, accounts)}"
            ),
            category_label=Labels.TRANSFER,
            color=Defaults.CATEGORY_COLOR,
        )

    category = categories.get(entry.category_id) if entry.category_id else None
    return TransactionRow(
        id=tx.id,
        date=tx.date,
        type=tx.type,
        amount=tx.amount,
        signed_amount=net_effect(tx),
        description=tx.description,
        account_label=account_label(entry.account_id, accounts),
        category_label=category.name if category else Labels.UNCATEGORIZED,
        color=category.color if category else Defaults.CATEGORY_COLOR,
    )


def project(
    snapshot: MirrorSnapshot,
    start: date | None = None,
    end: date | None = None,
    recent_days: int = Defaults.RECENT_DAYS,
) -> DashboardSnapshot:
    """대시보드 계산

    Args:
        snapshot: Local Mirror 스냅샷
        start: 기간 시작일 (포함)
        end: 기간 종료일 (포함)
        recent_days: 최근 현금 흐름에 포함할 날짜 수

    Returns:
        DashboardSnapshot
    """
    accounts = {a.id: a for a in snapshot.accounts}
    categories = {c.id: c for c in snapshot.categories}
    period = [t for t in snapshot.transactions if in_period(t, start, end)]

    total_balance = sum((a.balance for a in snapshot.accounts), ZERO)

    period_income = ZERO
    period_expense = ZERO
    expense_by_category: dict[str, Decimal] = {}
    daily: dict[date, list[Decimal]] = {}

    for tx in period:
        entry = tx.entry
        if isinstance(entry, TransferEntry):
            continue

        bucket = daily.setdefault(tx.date, [ZERO, ZERO])
        if isinstance(entry, IncomeEntry):
            period_income += tx.amount
            bucket[0] += tx.amount
        else:
            period_expense += tx.amount
            bucket[1] += tx.amount
            key = (
                entry.category_id
                if entry.category_id in categories
                else Labels.UNCATEGORIZED_ID
            )
            expense_by_category[key] = expense_by_category.get(key, ZERO) + tx.amount

    daily_series = tuple(
        DailyPoint(
            date=d,
            income=daily[d][0],
            expense=daily[d][1],
            net=daily[d][0] - daily[d][1],
        )
        for d in sorted(daily)
    )

    breakdown = []
    for category_id, amount in expense_by_category.items():
        category = categories.get(category_id)
        breakdown.append(
            CategoryBreakdown(
                category_id=category_id,
                name=category.name if category else Labels.UNCATEGORIZED,
                color=category.color if category else Defaults.CATEGORY_COLOR,
                amount=amount,
            )
        )
    breakdown.sort(key=lambda b: (-b.amount, b.name, b.category_id))

    return DashboardSnapshot(
        total_balance=total_balance,
        period_income=period_income,
        period_expense=period_expense,
        expense_by_category=expense_by_category,
        daily_series=daily_series,
        recent_series=daily_series[-recent_days:] if recent_days > 0 else (),
        expense_breakdown=tuple(breakdown),
        balance_trend=balance_trend(
            total_balance, snapshot.transactions, [p.date for p in daily_series]
        ),
        transaction_rows=tuple(
            transaction_row(t, accounts, categories) for t in period
        ),
        account_rows=tuple(
            AccountRow(
                id=a.id,
                name=a.name,
                type=a.type,
                type_label=Labels.ACCOUNT_TYPES.get(a.type, a.type),
                balance=a.balance,
                color=a.color,
                transaction_count=sum(
                    1 for t in snapshot.transactions if t.references_account(a.id)
                ),
            )
            for a in snapshot.accounts
        ),
    )


def balance_trend(
    total_balance: Decimal,
    transactions: tuple[Transaction, ...],
    dates: list[date],
) -> tuple[BalancePoint, ...]:
    """날짜별 종료 시점 총 잔고

    현재 총 잔고에서 이후 날짜의 순효과를 빼서 역산한다.
    """
    later_net: dict[date, Decimal] = {}
    for tx in transactions:
        later_net[tx.date] = later_net.get(tx.date, ZERO) + net_effect(tx)

    points = []
    for d in dates:
        after = sum((v for k, v in later_net.items() if k > d), ZERO)
        points.append(BalancePoint(date=d, balance=total_balance - after))
    return tuple(points)
