"""
어댑터 공통 데이터 모델

Ledger Store 쓰기 명령, 구독 핸들, 인증 사용자 모델.
모든 금액은 Decimal 타입 사용.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable


@dataclass(frozen=True)
class Increment:
    """원자적 가산 값

    update 필드에 사용하면 저장소가 현재 값에 delta를 더한다.
    (저장소가 지원하지 않으면 read-modify-write로 처리)
    """

    delta: Decimal


class WriteKind(str, Enum):
    """쓰기 종류"""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Write:
    """저장소 쓰기 명령 하나

    Attributes:
        kind: create / update / delete
        collection: 대상 컬렉션
        doc_id: 대상 문서 ID (create는 None)
        fields: 쓰기 필드 (delete는 None)
    """

    kind: WriteKind
    collection: str
    doc_id: str | None = None
    fields: dict[str, Any] | None = None

    @classmethod
    def create(cls, collection: str, fields: dict[str, Any]) -> "Write":
        return cls(kind=WriteKind.CREATE, collection=collection, fields=fields)

    @classmethod
    def update(cls, collection: str, doc_id: str, fields: dict[str, Any]) -> "Write":
        return cls(kind=WriteKind.UPDATE, collection=collection, doc_id=doc_id, fields=fields)

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "Write":
        return cls(kind=WriteKind.DELETE, collection=collection, doc_id=doc_id)

    @classmethod
    def increment(cls, collection: str, doc_id: str, field: str, delta: Decimal) -> "Write":
        """단일 필드 가산 쓰기"""
        return cls.update(collection, doc_id, {field: Increment(delta)})


# 구독 콜백 타입 정의
SnapshotCallback = Callable[[list[dict[str, Any]]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """컬렉션 변경 구독 핸들

    cancel() 호출 시 저장소 레지스트리에서 제거되고
    이후 스냅샷은 전달되지 않는다.
    """

    def __init__(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        on_cancel: Callable[["Subscription"], None] | None = None,
    ):
        self.collection = collection
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        """구독 활성 여부"""
        return self._active

    def deliver(self, docs: list[dict[str, Any]]) -> None:
        """스냅샷 전달 (비활성 구독은 무시)"""
        if self._active:
            self.on_snapshot(docs)

    def fail(self, error: Exception) -> None:
        """오류 전달"""
        if self._active and self.on_error is not None:
            self.on_error(error)

    def cancel(self) -> None:
        """구독 취소 (중복 호출 안전)"""
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel(self)


@dataclass(frozen=True)
class AuthUser:
    """인증된 사용자

    Attributes:
        uid: 사용자 고유 ID (저장소 범위 키)
        email: 이메일 (외부 제공자에 따라 없을 수 있음)
        display_name: 표시 이름
        provider: password 또는 외부 제공자 이름
    """

    uid: str
    email: str | None
    display_name: str | None = None
    provider: str = "password"

    @property
    def initial(self) -> str:
        """아바타용 첫 글자"""
        source = self.display_name or self.email or "U"
        return source[0].upper()
