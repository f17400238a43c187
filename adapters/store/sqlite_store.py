"""
SQLite Ledger Store

사용자 단위로 격리된 accounts / categories / transactions 저장소.
ILedgerStore Protocol 준수.

- Increment 필드는 트랜잭션 내 read-modify-write로 원자적 가산
  (트랜잭션은 어댑터에서 태스크 단위로 직렬화)
- batch()로 여러 문서 쓰기를 하나의 SQLite 트랜잭션으로 커밋
- 커밋 후 변경된 컬렉션의 전체 문서 집합을 구독자에게 전달
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import (
    ErrorCallback,
    Increment,
    SnapshotCallback,
    Subscription,
    Write,
    WriteKind,
)
from core.types import Collection

logger = logging.getLogger(__name__)


# 컬렉션별 컬럼 정의 (id, user_id 제외)
COLLECTION_COLUMNS: dict[str, tuple[str, ...]] = {
    Collection.ACCOUNTS.value: (
        "name", "type", "balance", "opening_balance", "color", "created_at",
    ),
    Collection.CATEGORIES.value: (
        "name", "type", "color",
    ),
    Collection.TRANSACTIONS.value: (
        "type", "amount", "description", "date",
        "account_id", "category_id", "to_account_id", "created_at",
    ),
}

# TEXT로 저장되는 Decimal 컬럼
DECIMAL_COLUMNS: set[str] = {"balance", "opening_balance", "amount"}

# 기본 정렬 (transactions는 최신 생성 순)
ORDER_BY: dict[str, str] = {
    Collection.ACCOUNTS.value: "created_at, id",
    Collection.CATEGORIES.value: "name, id",
    Collection.TRANSACTIONS.value: "created_at DESC, id",
}


def _columns(collection: str) -> tuple[str, ...]:
    try:
        return COLLECTION_COLUMNS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _to_db(column: str, value: Any) -> Any:
    """DB 저장 값으로 변환"""
    if value is None:
        return None
    if column in DECIMAL_COLUMNS:
        return str(value)
    return value


def _from_db(column: str, value: Any) -> Any:
    """DB 값을 문서 값으로 변환"""
    if value is None:
        return None
    if column in DECIMAL_COLUMNS:
        return Decimal(value)
    return value


class SQLiteLedgerStore:
    """SQLite 기반 Ledger Store

    Args:
        db: 연결된 SQLite 어댑터 (쓰기 가능)
        user_id: 저장소 범위 사용자 ID

    사용 예시:
    ```python
    store = SQLiteLedgerStore(db, user_id="u-1")

    account_id = await store.create("accounts", {"name": "Wallet", ...})
    await store.update("accounts", account_id, {"balance": Increment(Decimal("-20"))})

    sub = await store.subscribe("accounts", mirror.on_accounts)
    sub.cancel()
    ```
    """

    def __init__(self, db: SQLiteAdapter, user_id: str):
        if not user_id:
            raise ValueError("user_id는 필수입니다")

        self.db = db
        self.user_id = user_id
        self._subscriptions: dict[str, list[Subscription]] = {}

    @property
    def supports_batch(self) -> bool:
        return True

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        """문서 생성"""
        async with self.db.transaction():
            doc_id = await self._apply(Write.create(collection, fields))

        await self._notify({collection})
        assert doc_id is not None
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        """문서 부분 수정"""
        async with self.db.transaction():
            await self._apply(Write.update(collection, doc_id, fields))

        await self._notify({collection})

    async def delete(self, collection: str, doc_id: str) -> None:
        """문서 삭제 (없으면 무시)"""
        async with self.db.transaction():
            await self._apply(Write.delete(collection, doc_id))

        await self._notify({collection})

    async def batch(self, writes: list[Write]) -> list[str | None]:
        """여러 쓰기를 하나의 트랜잭션으로 커밋

        하나라도 실패하면 전체 롤백.
        """
        results: list[str | None] = []

        async with self.db.transaction():
            for write in writes:
                results.append(await self._apply(write))

        await self._notify({w.collection for w in writes})

        logger.debug(
            "Batch committed",
            extra={"user_id": self.user_id, "writes": len(writes)},
        )
        return results

    async def _apply(self, write: Write) -> str | None:
        """쓰기 하나 실행 (커밋하지 않음)"""
        table = write.collection
        columns = _columns(table)

        if write.kind == WriteKind.CREATE:
            fields = write.fields or {}
            self._check_fields(table, fields)
            doc_id = uuid4().hex
            names = ["id", "user_id"] + [c for c in columns if c in fields]
            values = [doc_id, self.user_id] + [
                _to_db(c, fields[c]) for c in columns if c in fields
            ]
            placeholders = ", ".join("?" for _ in names)
            await self.db.execute(
                f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders})",
                tuple(values),
            )
            return doc_id

        if write.kind == WriteKind.UPDATE:
            assert write.doc_id is not None
            fields = write.fields or {}
            self._check_fields(table, fields)
            current = await self._load_one(table, write.doc_id)
            if current is None:
                raise KeyError(f"{table}/{write.doc_id} not found")

            assignments: list[str] = []
            values = []
            for column, value in fields.items():
                if isinstance(value, Increment):
                    base = current.get(column) or Decimal("0")
                    value = Decimal(base) + value.delta
                assignments.append(f"{column} = ?")
                values.append(_to_db(column, value))

            if assignments:
                await self.db.execute(
                    f"UPDATE {table} SET {', '.join(assignments)} "
                    f"WHERE id = ? AND user_id = ?",
                    tuple(values) + (write.doc_id, self.user_id),
                )
            return write.doc_id

        assert write.doc_id is not None
        await self.db.execute(
            f"DELETE FROM {table} WHERE id = ? AND user_id = ?",
            (write.doc_id, self.user_id),
        )
        return write.doc_id

    @staticmethod
    def _check_fields(table: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(_columns(table))
        if unknown:
            raise ValueError(f"Unknown fields for {table}: {sorted(unknown)}")

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        """컬렉션 전체 문서 조회 (커밋된 상태만)"""
        columns = _columns(collection)
        async with self.db.transaction():
            rows = await self.db.fetchall(
                f"SELECT id, {', '.join(columns)} FROM {collection} "
                f"WHERE user_id = ? ORDER BY {ORDER_BY[collection]}",
                (self.user_id,),
            )
        return [self._row_to_doc(columns, row) for row in rows]

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """단일 문서 조회 (커밋된 상태만)"""
        async with self.db.transaction():
            return await self._load_one(collection, doc_id)

    async def _load_one(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        columns = _columns(collection)
        row = await self.db.fetchone(
            f"SELECT id, {', '.join(columns)} FROM {collection} "
            f"WHERE id = ? AND user_id = ?",
            (doc_id, self.user_id),
        )
        if row is None:
            return None
        return self._row_to_doc(columns, row)

    @staticmethod
    def _row_to_doc(columns: tuple[str, ...], row: tuple[Any, ...]) -> dict[str, Any]:
        doc: dict[str, Any] = {"id": row[0]}
        for column, value in zip(columns, row[1:]):
            doc[column] = _from_db(column, value)
        return doc

    # -------------------------------------------------------------------------
    # 구독
    # -------------------------------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """컬렉션 변경 구독 (현재 스냅샷 즉시 전달)"""
        _columns(collection)

        subscription = Subscription(
            collection=collection,
            on_snapshot=on_snapshot,
            on_error=on_error,
            on_cancel=self._remove_subscription,
        )
        self._subscriptions.setdefault(collection, []).append(subscription)

        await self._deliver(collection, [subscription])

        logger.debug(
            f"Subscribed: {collection}",
            extra={"user_id": self.user_id},
        )
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.collection, [])
        if subscription in subs:
            subs.remove(subscription)

    @property
    def subscription_count(self) -> int:
        """활성 구독 수"""
        return sum(len(subs) for subs in self._subscriptions.values())

    async def _notify(self, collections: set[str]) -> None:
        """변경된 컬렉션 구독자에게 스냅샷 전달"""
        for collection in sorted(collections):
            subs = list(self._subscriptions.get(collection, []))
            if subs:
                await self._deliver(collection, subs)

    async def _deliver(self, collection: str, subs: list[Subscription]) -> None:
        try:
            docs = await self.get_all(collection)
        except Exception as e:
            logger.error(
                f"Snapshot load failed: {collection}: {e}",
                extra={"user_id": self.user_id},
            )
            for sub in subs:
                sub.fail(e)
            return

        for sub in subs:
            try:
                sub.deliver([dict(doc) for doc in docs])
            except Exception as e:
                # 커밋된 쓰기는 구독자 오류와 무관하게 성공
                logger.error(
                    f"Snapshot listener error: {collection}: {e}",
                    extra={"user_id": self.user_id},
                )
