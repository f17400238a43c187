"""
Drift Detector

계좌 잔고와 거래 기록을 비교하여 불일치 감지.
기대값 = opening_balance + Σ(현재 거래의 효과)

감지만 하고 수정하지 않는다.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from core.ledger.accumulator import effects_of
from engine.mirror.local_mirror import MirrorSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    """계좌 잔고 불일치"""

    account_id: str
    account_name: str
    expected: Decimal
    actual: Decimal

    @property
    def difference(self) -> Decimal:
        """actual - expected"""
        return self.actual - self.expected


class DriftDetector:
    """Drift 감지기

    부분 쓰기나 외부 수정으로 생긴 잔고 불일치를 찾는다.
    삭제된 계좌를 참조하는 거래 효과는 무시.

    사용 예시:
    ```python
    detector = DriftDetector()
    drifts = detector.detect(mirror.snapshot())

    for drift in drifts:
        print(drift.account_id, drift.difference)
    ```
    """

    def __init__(self, tolerance: Decimal = Decimal("0")):
        self.tolerance = tolerance

    def expected_balances(self, snapshot: MirrorSnapshot) -> dict[str, Decimal]:
        """계좌별 기대 잔고 계산"""
        expected = {a.id: a.opening_balance for a in snapshot.accounts}

        for tx in snapshot.transactions:
            for delta in effects_of(tx.entry, tx.amount):
                if delta.account_id in expected:
                    expected[delta.account_id] += delta.delta

        return expected

    def detect(self, snapshot: MirrorSnapshot) -> list[BalanceDrift]:
        """불일치 계좌 목록

        Returns:
            BalanceDrift 리스트 (일치 시 빈 리스트)
        """
        expected = self.expected_balances(snapshot)
        drifts: list[BalanceDrift] = []

        for account in snapshot.accounts:
            drift = BalanceDrift(
                account_id=account.id,
                account_name=account.name,
                expected=expected[account.id],
                actual=account.balance,
            )
            if abs(drift.difference) > self.tolerance:
                drifts.append(drift)

        if drifts:
            logger.warning(
                f"Balance drift detected: {len(drifts)} account(s)",
                extra={
                    "accounts": {d.account_id: str(d.difference) for d in drifts},
                },
            )
        else:
            logger.debug("No balance drift")

        return drifts
