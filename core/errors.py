"""
오류 분류

잔고 정합성 엔진에서 발생하는 오류 체계.
어떤 오류도 프로세스를 종료시키지 않으며 모두 사용자에게 보고됨.

- ValidationError: 쓰기 전에 거부 (상태 변화 없음)
- ConfirmationRequired: 잔고 부족 등 명시적 확인이 필요한 경고
- StoreWriteError: 저장소 쓰기 실패 (일부 적용 가능)
- ReferentialGap: 거래가 참조하는 계좌/카테고리가 없음
"""

from dataclasses import dataclass
from typing import Any


class LedgerError(Exception):
    """잔고 엔진 공통 예외"""

    pass


class ValidationError(LedgerError):
    """입력 검증 실패

    저장소에 어떤 쓰기도 발생하기 전에 발생.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ConfirmationRequired(ValidationError):
    """명시적 확인이 필요한 소프트 경고

    이체 출금 계좌 잔고 부족 시 발생.
    confirm_overdraft=True로 다시 요청하면 진행됨.
    """

    def __init__(
        self,
        message: str,
        account_id: str,
        balance: Any,
        amount: Any,
    ):
        super().__init__(message, field="amount")
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class NotFoundError(ValidationError):
    """대상 문서 없음"""

    pass


@dataclass(frozen=True)
class AppliedWrite:
    """저장소에 반영 완료된 쓰기 기록 (부분 실패 추적용)"""

    collection: str
    doc_id: str | None
    kind: str
    fields: dict[str, Any] | None = None


class StoreWriteError(LedgerError):
    """저장소 쓰기 실패

    applied_writes가 비어 있지 않으면 일부 쓰기만 반영된 상태.
    자동 재시도/롤백은 하지 않음.
    """

    def __init__(
        self,
        message: str,
        applied_writes: list[AppliedWrite] | None = None,
        operation_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.applied_writes = list(applied_writes or [])
        self.operation_id = operation_id

    @property
    def partial(self) -> bool:
        """일부 쓰기만 반영되었는지 여부"""
        return len(self.applied_writes) > 0


class ReferentialGap(LedgerError):
    """참조 대상(계좌/카테고리) 누락

    렌더링 시 기본값으로 대체하고, 삭제 시 잔고 되돌리기를 생략.
    호출자에게는 경고로만 전달됨.
    """

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} no longer exists")
        self.collection = collection
        self.doc_id = doc_id


class AuthError(LedgerError):
    """인증 실패"""

    pass
