"""
거래 명령 모델

Command Processor 입력(TransactionRequest)과 결과(CommandResult),
부분 쓰기 기록(Inconsistency).
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from typing import Any

from core.domain.models import Transaction, TransferEntry
from core.errors import AppliedWrite, ValidationError
from core.ledger.accumulator import BalanceDelta
from core.types import TransactionType


@dataclass(frozen=True)
class TransactionRequest:
    """거래 생성/수정 요청 (화면 입력 그대로)

    - income / expense: account_id, category_id 사용
    - transfer: from_account_id, to_account_id 사용 ("external" 허용)

    amount와 date는 문자열도 허용하며 Processor가 정규화한다.
    """

    type: str
    amount: Any
    date: date | str
    description: str = ""
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None

    @staticmethod
    def from_transaction(tx: Transaction) -> "TransactionRequest":
        """저장된 거래를 요청 형태로 되돌림 (부분 수정의 기준값)"""
        if isinstance(tx.entry, TransferEntry):
            return TransactionRequest(
                type=tx.type,
                amount=tx.amount,
                date=tx.date,
                description=tx.description,
                account_id=tx.entry.from_account_id,
                from_account_id=tx.entry.from_account_id,
                to_account_id=tx.entry.to_account_id,
            )
        return TransactionRequest(
            type=tx.type,
            amount=tx.amount,
            date=tx.date,
            description=tx.description,
            account_id=tx.entry.account_id,
            category_id=tx.entry.category_id,
        )

    def merged(self, changes: dict[str, Any]) -> "TransactionRequest":
        """일부 필드만 바꾼 새 요청

        Raises:
            ValidationError: 알 수 없는 필드
        """
        allowed = {f.name for f in fields(self)}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown fields: {sorted(unknown)}")

        updated = replace(self, **changes)

        # income/expense → transfer 변경 시 출금 계좌 미지정이면 기존 계좌 사용
        if (
            updated.type == TransactionType.TRANSFER.value
            and self.type != TransactionType.TRANSFER.value
            and "from_account_id" not in changes
        ):
            updated = replace(updated, from_account_id=updated.account_id)
        return updated


@dataclass(frozen=True)
class CommandResult:
    """명령 처리 결과

    Attributes:
        operation_id: 논리 연산 ID
        kind: create / edit / delete
        transaction_id: 대상 거래 ID
        state: 최종 연산 상태 (COMMITTED)
        deltas: 적용된 계좌별 잔고 변화량
        warnings: 참조 누락 등 경고 메시지
    """

    operation_id: str
    kind: str
    transaction_id: str
    state: str
    deltas: tuple[BalanceDelta, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class Inconsistency:
    """부분 쓰기로 남은 불일치 기록 (자동 복구 없음)"""

    operation_id: str
    kind: str
    transaction_id: str | None
    applied_writes: tuple[AppliedWrite, ...]
    error: str
    detected_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
