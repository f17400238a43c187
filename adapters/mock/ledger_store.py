"""
Mock Ledger Store

테스트용 인메모리 Ledger Store.
ILedgerStore Protocol 준수.

기본값은 batch 미지원 (순차 쓰기 경로 검증용).
fail_on_write()로 N번째 쓰기를 실패시켜 부분 실패를 재현할 수 있다.
"""

import copy
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.models import (
    ErrorCallback,
    Increment,
    SnapshotCallback,
    Subscription,
    Write,
    WriteKind,
)
from core.types import Collection


class StoreUnavailableError(ConnectionError):
    """주입된 저장소 장애"""

    pass


@dataclass
class WriteRecord:
    """쓰기 기록"""

    kind: WriteKind
    collection: str
    doc_id: str
    fields: dict[str, Any] | None


class InMemoryLedgerStore:
    """인메모리 Ledger Store

    사용 예시:
    ```python
    store = InMemoryLedgerStore()
    store.seed("accounts", {"id": "A", "name": "Wallet", "balance": Decimal("100")})

    # 두 번째 쓰기에서 실패
    store.fail_on_write(2)

    # 쓰기 기록 확인
    assert store.writes[0].kind == WriteKind.UPDATE
    ```
    """

    def __init__(self, supports_batch: bool = False):
        """
        Args:
            supports_batch: True면 batch()를 원자적으로 처리
        """
        self._supports_batch = supports_batch
        self._docs: dict[str, dict[str, dict[str, Any]]] = {
            c.value: {} for c in Collection
        }
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._fail_at: int | None = None
        self._write_count = 0
        self.writes: list[WriteRecord] = []

    @property
    def supports_batch(self) -> bool:
        return self._supports_batch

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    def seed(self, collection: str, doc: dict[str, Any]) -> str:
        """구독 알림 없이 문서 직접 삽입"""
        doc = dict(doc)
        doc_id = doc.pop("id", None) or uuid4().hex
        self._collection(collection)[doc_id] = doc
        return doc_id

    def fail_on_write(self, n: int) -> None:
        """지금부터 n번째 쓰기를 실패시킴 (1부터 시작)"""
        self._fail_at = self._write_count + n

    def document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """저장된 문서 조회 (id 포함)"""
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **doc}

    def documents(self, collection: str) -> list[dict[str, Any]]:
        """컬렉션 전체 문서 조회 (id 포함)"""
        return [
            {"id": doc_id, **doc}
            for doc_id, doc in self._collection(collection).items()
        ]

    @property
    def subscription_count(self) -> int:
        """활성 구독 수"""
        return sum(len(subs) for subs in self._subscriptions.values())

    # -------------------------------------------------------------------------
    # ILedgerStore
    # -------------------------------------------------------------------------

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        doc_id = self._apply(self._docs, Write.create(collection, fields))
        self._notify({collection})
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        self._apply(self._docs, Write.update(collection, doc_id, fields))
        self._notify({collection})

    async def delete(self, collection: str, doc_id: str) -> None:
        self._apply(self._docs, Write.delete(collection, doc_id))
        self._notify({collection})

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return self.document(collection, doc_id)

    async def batch(self, writes: list[Write]) -> list[str | None]:
        if not self._supports_batch:
            raise NotImplementedError("batch writes are not supported")

        # 사본에 적용 후 한 번에 교체 (실패 시 원본 유지)
        staged = copy.deepcopy(self._docs)
        pending = len(self.writes)
        try:
            results: list[str | None] = [self._apply(staged, w) for w in writes]
        except Exception:
            del self.writes[pending:]
            raise

        self._docs = staged
        self._notify({w.collection for w in writes})
        return results

    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        self._collection(collection)

        subscription = Subscription(
            collection=collection,
            on_snapshot=on_snapshot,
            on_error=on_error,
            on_cancel=self._remove_subscription,
        )
        self._subscriptions.setdefault(collection, []).append(subscription)
        subscription.deliver(self.documents(collection))
        return subscription

    def emit_error(self, collection: str, error: Exception) -> None:
        """구독자에게 오류 전달 (테스트용)"""
        for sub in list(self._subscriptions.get(collection, [])):
            sub.fail(error)

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        try:
            return self._docs[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _apply(
        self,
        docs: dict[str, dict[str, dict[str, Any]]],
        write: Write,
    ) -> str:
        self._write_count += 1
        if self._fail_at is not None and self._write_count == self._fail_at:
            self._fail_at = None
            raise StoreUnavailableError(
                f"injected failure on write #{self._write_count}"
            )

        if write.collection not in docs:
            raise ValueError(f"Unknown collection: {write.collection}")
        table = docs[write.collection]

        if write.kind == WriteKind.CREATE:
            doc_id = uuid4().hex
            table[doc_id] = dict(write.fields or {})
        elif write.kind == WriteKind.UPDATE:
            assert write.doc_id is not None
            doc_id = write.doc_id
            if doc_id not in table:
                raise KeyError(f"{write.collection}/{doc_id} not found")
            current = table[doc_id]
            for name, value in (write.fields or {}).items():
                if isinstance(value, Increment):
                    value = Decimal(str(current.get(name) or "0")) + value.delta
                current[name] = value
        else:
            assert write.doc_id is not None
            doc_id = write.doc_id
            table.pop(doc_id, None)

        self.writes.append(
            WriteRecord(
                kind=write.kind,
                collection=write.collection,
                doc_id=doc_id,
                fields=dict(write.fields) if write.fields else None,
            )
        )
        return doc_id

    def _remove_subscription(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.collection, [])
        if subscription in subs:
            subs.remove(subscription)

    def _notify(self, collections: set[str]) -> None:
        for collection in sorted(collections):
            docs = self.documents(collection)
            for sub in list(self._subscriptions.get(collection, [])):
                sub.deliver([dict(d) for d in docs])
