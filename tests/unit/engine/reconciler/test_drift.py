"""
Drift Detector 테스트

opening_balance + Σ(거래 효과)와 저장된 잔고 비교 테스트
"""

from datetime import date
from decimal import Decimal

from core.domain.models import (
    Account,
    ExpenseEntry,
    IncomeEntry,
    Transaction,
    TransferEntry,
)
from engine.mirror.local_mirror import MirrorSnapshot
from engine.reconciler.drift import BalanceDrift, DriftDetector


def _account(account_id: str, opening: str, balance: str) -> Account:
    return Account(
        id=account_id,
        name=account_id.upper(),
        type="bank",
        balance=Decimal(balance),
        opening_balance=Decimal(opening),
    )


def _tx(tx_id: str, amount: str, entry) -> Transaction:
    return Transaction(
        id=tx_id,
        amount=Decimal(amount),
        description="",
        date=date(2024, 5, 1),
        entry=entry,
    )


class TestDriftDetector:
    """DriftDetector 테스트"""

    def test_consistent_ledger(self) -> None:
        snapshot = MirrorSnapshot(
            accounts=(_account("a", "100", "120"), _account("b", "0", "30")),
            categories=(),
            transactions=(
                _tx("t1", "30", TransferEntry("a", "b")),
                _tx("t2", "50", IncomeEntry("a")),
            ),
        )

        assert DriftDetector().detect(snapshot) == []

    def test_drift_detected(self) -> None:
        """반쯤 적용된 이체: 출금만 반영"""
        snapshot = MirrorSnapshot(
            accounts=(_account("a", "100", "70"), _account("b", "0", "0")),
            categories=(),
            transactions=(),
        )

        [drift] = DriftDetector().detect(snapshot)

        assert drift == BalanceDrift("a", "A", Decimal("100"), Decimal("70"))
        assert drift.difference == Decimal("-30")

    def test_orphaned_effects_ignored(self) -> None:
        """삭제된 계좌를 참조하는 효과는 무시"""
        snapshot = MirrorSnapshot(
            accounts=(_account("a", "100", "90"),),
            categories=(),
            transactions=(
                _tx("t1", "10", ExpenseEntry("a")),
                _tx("t2", "500", IncomeEntry("deleted")),
            ),
        )

        assert DriftDetector().expected_balances(snapshot) == {"a": Decimal("90")}
        assert DriftDetector().detect(snapshot) == []

    def test_tolerance(self) -> None:
        snapshot = MirrorSnapshot(
            accounts=(_account("a", "100", "100.01"),),
            categories=(),
            transactions=(),
        )

        assert DriftDetector(tolerance=Decimal("0.01")).detect(snapshot) == []
        assert len(DriftDetector().detect(snapshot)) == 1
