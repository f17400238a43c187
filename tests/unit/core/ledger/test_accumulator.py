"""
core/ledger/accumulator.py 테스트

잔고 변화량 계산 순수 함수 테스트
"""

from decimal import Decimal

import pytest

from core.domain.models import ExpenseEntry, IncomeEntry, TransferEntry
from core.errors import ValidationError
from core.ledger.accumulator import (
    BalanceDelta,
    apply_transfer,
    combine,
    effect,
    effects_of,
    normalize_amount,
    normalize_balance,
    reversal_of,
    reverse,
)


class TestEffect:
    """effect / apply_transfer / reverse 테스트"""

    def test_income_is_positive(self) -> None:
        assert effect("income", Decimal("50")) == Decimal("50")

    def test_expense_is_negative(self) -> None:
        assert effect("expense", Decimal("20")) == Decimal("-20")

    def test_transfer_not_supported(self) -> None:
        """이체는 단일 계좌 효과가 없음"""
        with pytest.raises(ValueError):
            effect("transfer", Decimal("1"))

    def test_apply_transfer(self) -> None:
        assert apply_transfer(Decimal("30")) == (Decimal("-30"), Decimal("30"))

    def test_reverse_cancels(self) -> None:
        """effect + reverse(effect) = 0"""
        for tx_type in ("income", "expense"):
            delta = effect(tx_type, Decimal("12.34"))
            assert delta + reverse(delta) == 0

    def test_transfer_conserves_total(self) -> None:
        """이체는 총액 보존"""
        from_delta, to_delta = apply_transfer(Decimal("99.99"))
        assert from_delta + to_delta == 0


class TestEffectsOf:
    """effects_of / reversal_of 테스트"""

    def test_income_entry(self) -> None:
        assert effects_of(IncomeEntry("A"), Decimal("50")) == [
            BalanceDelta("A", Decimal("50"))
        ]

    def test_transfer_entry(self) -> None:
        assert effects_of(TransferEntry("A", "B"), Decimal("30")) == [
            BalanceDelta("A", Decimal("-30")),
            BalanceDelta("B", Decimal("30")),
        ]

    def test_reversal(self) -> None:
        assert reversal_of(ExpenseEntry("A", "food"), Decimal("20")) == [
            BalanceDelta("A", Decimal("20"))
        ]


class TestCombine:
    """combine 테스트"""

    def test_nets_per_account(self) -> None:
        """지출 20 → 35 수정: 되돌리기 +20, 새 효과 -35 → -15"""
        deltas = combine([
            BalanceDelta("A", Decimal("20")),
            BalanceDelta("A", Decimal("-35")),
        ])

        assert deltas == [BalanceDelta("A", Decimal("-15"))]

    def test_drops_zero_and_keeps_order(self) -> None:
        deltas = combine([
            BalanceDelta("B", Decimal("5")),
            BalanceDelta("A", Decimal("10")),
            BalanceDelta("B", Decimal("-5")),
        ])

        assert deltas == [BalanceDelta("A", Decimal("10"))]

    def test_empty(self) -> None:
        assert combine([]) == []


class TestNormalizeAmount:
    """normalize_amount 테스트"""

    def test_string_amount(self) -> None:
        assert normalize_amount("12.345") == Decimal("12.35")

    def test_float_has_no_binary_error(self) -> None:
        """0.1 + 0.2 입력도 정확"""
        assert normalize_amount(0.1) + normalize_amount(0.2) == Decimal("0.30")

    def test_custom_precision(self) -> None:
        assert normalize_amount("1500.4", Decimal("1")) == Decimal("1500")

    @pytest.mark.parametrize("value", ["0", "-5", "0.001", "abc", "", None, "NaN", "Infinity", True])
    def test_rejects_invalid(self, value: object) -> None:
        """0 이하, 숫자 아님, 유한하지 않음 → 거부"""
        with pytest.raises(ValidationError) as exc_info:
            normalize_amount(value)

        assert exc_info.value.field == "amount"


class TestNormalizeBalance:
    """normalize_balance 테스트"""

    def test_negative_allowed(self) -> None:
        """신용카드 등 음수 잔고 허용"""
        assert normalize_balance("-250.5") == Decimal("-250.50")

    def test_empty_is_zero(self) -> None:
        assert normalize_balance(None) == Decimal("0.00")
        assert normalize_balance("") == Decimal("0.00")

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_balance("ten")

        assert exc_info.value.field == "balance"
