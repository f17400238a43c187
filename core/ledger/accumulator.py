"""
잔고 누산기 (Balance Accumulator)

거래가 계좌 잔고에 미치는 변화량(delta)을 계산하는 순수 함수 모음.
부수 효과/I/O 없음. 모든 금액은 Decimal로 계산 (부동소수점 오차 금지).

사용 예시:
```python
effect("income", Decimal("50"))        # Decimal("50")
effect("expense", Decimal("20"))       # Decimal("-20")
apply_transfer(Decimal("30"))          # (Decimal("-30"), Decimal("30"))
reverse(Decimal("-20"))                # Decimal("20")

deltas = effects_of(TransferEntry("A", "B"), Decimal("30"))
# [BalanceDelta("A", -30), BalanceDelta("B", 30)]
```
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from core.constants import Defaults
from core.domain.models import Entry, TransferEntry
from core.errors import ValidationError
from core.types import TransactionType


@dataclass(frozen=True)
class BalanceDelta:
    """계좌 하나에 대한 잔고 변화량"""

    account_id: str
    delta: Decimal


def effect(tx_type: str | TransactionType, amount: Decimal) -> Decimal:
    """수입/지출 거래의 잔고 변화량

    Args:
        tx_type: income 또는 expense
        amount: 양수 금액

    Returns:
        income → +amount, expense → -amount

    Raises:
        ValueError: transfer 등 단일 계좌 효과가 아닌 유형
    """
    kind = TransactionType(tx_type)
    if kind == TransactionType.INCOME:
        return amount
    if kind == TransactionType.EXPENSE:
        return -amount
    raise ValueError(f"effect()는 {kind.value} 유형을 지원하지 않습니다 (apply_transfer 사용)")


def apply_transfer(amount: Decimal) -> tuple[Decimal, Decimal]:
    """이체의 (출금 계좌, 입금 계좌) 변화량"""
    return -amount, amount


def reverse(delta: Decimal) -> Decimal:
    """변화량 되돌리기"""
    return -delta


def effects_of(entry: Entry, amount: Decimal) -> list[BalanceDelta]:
    """entry가 암시하는 계좌별 변화량

    entry 자신의 형태(수입/지출/이체)만으로 계산한다.
    """
    if isinstance(entry, TransferEntry):
        delta_from, delta_to = apply_transfer(amount)
        return [
            BalanceDelta(entry.from_account_id, delta_from),
            BalanceDelta(entry.to_account_id, delta_to),
        ]
    return [BalanceDelta(entry.account_id, effect(entry.kind, amount))]


def reversal_of(entry: Entry, amount: Decimal) -> list[BalanceDelta]:
    """entry 효과를 정확히 상쇄하는 변화량"""
    return [
        BalanceDelta(d.account_id, reverse(d.delta))
        for d in effects_of(entry, amount)
    ]


def combine(deltas: Iterable[BalanceDelta]) -> list[BalanceDelta]:
    """계좌별 변화량 합산

    처음 등장한 계좌 순서를 유지하고 합이 0인 계좌는 제외.
    """
    totals: dict[str, Decimal] = {}
    for d in deltas:
        totals[d.account_id] = totals.get(d.account_id, Decimal("0")) + d.delta

    return [
        BalanceDelta(account_id, total)
        for account_id, total in totals.items()
        if total != 0
    ]


def normalize_amount(
    value: Any,
    precision: Decimal = Defaults.AMOUNT_PRECISION,
) -> Decimal:
    """입력 금액을 양수 Decimal로 정규화

    float는 문자열을 거쳐 변환해 이진 오차를 피한다.

    Raises:
        ValidationError: 숫자가 아니거나 0 이하인 경우
    """
    if isinstance(value, bool):
        raise ValidationError("금액은 숫자여야 합니다", field="amount")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"금액 형식이 잘못되었습니다: {value!r}", field="amount") from e

    if not amount.is_finite():
        raise ValidationError("금액은 유한한 숫자여야 합니다", field="amount")

    amount = amount.quantize(precision, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError("금액은 0보다 커야 합니다", field="amount")

    return amount


def normalize_balance(
    value: Any,
    precision: Decimal = Defaults.AMOUNT_PRECISION,
) -> Decimal:
    """계좌 잔고 입력 정규화 (음수 허용)"""
    if value is None or value == "":
        return Decimal("0").quantize(precision)
    if isinstance(value, bool):
        raise ValidationError("잔고는 숫자여야 합니다", field="balance")

    try:
        balance = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"잔고 형식이 잘못되었습니다: {value!r}", field="balance") from e

    if not balance.is_finite():
        raise ValidationError("잔고는 유한한 숫자여야 합니다", field="balance")

    return balance.quantize(precision, rounding=ROUND_HALF_UP)
