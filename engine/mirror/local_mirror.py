"""
Local Mirror

Ledger Store 스냅샷으로 갱신되는 인메모리 복제본.
화면 렌더링과 명령 검증은 모두 이 복제본을 읽는다.

- 스냅샷 하나가 해당 컬렉션 전체를 교체 (증분 병합 없음)
- transactions는 created_at 내림차순 정렬
- 낙관적 갱신(provisional)은 읽기 시 덮어쓰고, 다음 스냅샷에서 폐기
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from core.domain.models import Account, Category, Transaction
from core.types import Collection

logger = logging.getLogger(__name__)


MirrorListener = Callable[[str], None]


@dataclass(frozen=True)
class MirrorSnapshot:
    """복제본의 특정 시점 읽기 전용 사본"""

    accounts: tuple[Account, ...]
    categories: tuple[Category, ...]
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class ProvisionalEntry:
    """낙관적 갱신 항목

    value가 None이면 삭제로 간주.
    """

    operation_id: str
    value: Account | Transaction | None


_PARSERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    Collection.ACCOUNTS.value: Account.from_document,
    Collection.CATEGORIES.value: Category.from_document,
    Collection.TRANSACTIONS.value: Transaction.from_document,
}


def _sort_transactions(items: list[Transaction]) -> list[Transaction]:
    return sorted(items, key=lambda t: (t.created_at, t.id), reverse=True)


class LocalMirror:
    """인메모리 복제본

    사용 예시:
    ```python
    mirror = LocalMirror()
    await store.subscribe("accounts", mirror.on_accounts)
    await store.subscribe("transactions", mirror.on_transactions)

    mirror.add_listener(lambda collection: print("changed", collection))
    account = mirror.get_account("A")
    ```
    """

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {c.value: {} for c in Collection}
        self._provisional: dict[str, dict[str, ProvisionalEntry]] = {
            c.value: {} for c in Collection
        }
        self._loaded: set[str] = set()
        self._versions: dict[str, int] = {c.value: 0 for c in Collection}
        self._listeners: list[MirrorListener] = []

    # -------------------------------------------------------------------------
    # 스냅샷 수신
    # -------------------------------------------------------------------------

    def apply_snapshot(self, collection: str, docs: list[dict[str, Any]]) -> None:
        """컬렉션 전체 교체

        해석할 수 없는 문서는 경고 후 제외한다.
        """
        parser = _PARSERS[collection]
        parsed: dict[str, Any] = {}

        for doc in docs:
            try:
                item = parser(doc)
            except (KeyError, ValueError, ArithmeticError) as e:
                logger.warning(
                    f"Skipping malformed document: {collection}/{doc.get('id')}: {e}"
                )
                continue
            parsed[item.id] = item

        if collection == Collection.TRANSACTIONS.value:
            parsed = {t.id: t for t in _sort_transactions(list(parsed.values()))}

        self._docs[collection] = parsed
        self._loaded.add(collection)
        self._versions[collection] += 1

        dropped = len(self._provisional[collection])
        self._provisional[collection] = {}

        logger.debug(
            f"Snapshot applied: {collection}",
            extra={"documents": len(parsed), "provisional_dropped": dropped},
        )

        self._emit(collection)

    def on_accounts(self, docs: list[dict[str, Any]]) -> None:
        self.apply_snapshot(Collection.ACCOUNTS.value, docs)

    def on_categories(self, docs: list[dict[str, Any]]) -> None:
        self.apply_snapshot(Collection.CATEGORIES.value, docs)

    def on_transactions(self, docs: list[dict[str, Any]]) -> None:
        self.apply_snapshot(Collection.TRANSACTIONS.value, docs)

    def snapshot_callback(self, collection: str) -> Callable[[list[dict[str, Any]]], None]:
        """컬렉션별 스냅샷 콜백 반환 (store.subscribe용)"""
        return {
            Collection.ACCOUNTS.value: self.on_accounts,
            Collection.CATEGORIES.value: self.on_categories,
            Collection.TRANSACTIONS.value: self.on_transactions,
        }[collection]

    # -------------------------------------------------------------------------
    # 낙관적 갱신
    # -------------------------------------------------------------------------

    def apply_provisional(
        self,
        collection: str,
        doc_id: str,
        value: Account | Transaction | None,
        operation_id: str,
    ) -> None:
        """낙관적 갱신 적용 (다음 스냅샷에서 폐기)"""
        self._provisional[collection][doc_id] = ProvisionalEntry(operation_id, value)
        self._emit(collection)

    def provisional_operations(self, collection: str | None = None) -> set[str]:
        """미확정 낙관적 갱신의 operation_id 집합"""
        collections = [collection] if collection else list(self._provisional)
        return {
            entry.operation_id
            for c in collections
            for entry in self._provisional[c].values()
        }

    @property
    def has_provisional(self) -> bool:
        return any(self._provisional[c] for c in self._provisional)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def _view(self, collection: str) -> dict[str, Any]:
        """권위 데이터 + 낙관적 갱신 오버레이"""
        overlay = self._provisional[collection]
        if not overlay:
            return self._docs[collection]

        merged = dict(self._docs[collection])
        for doc_id, entry in overlay.items():
            if entry.value is None:
                merged.pop(doc_id, None)
            else:
                merged[doc_id] = entry.value
        return merged

    @property
    def accounts(self) -> tuple[Account, ...]:
        return tuple(self._view(Collection.ACCOUNTS.value).values())

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._view(Collection.CATEGORIES.value).values())

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """created_at 내림차순"""
        view = self._view(Collection.TRANSACTIONS.value)
        if self._provisional[Collection.TRANSACTIONS.value]:
            return tuple(_sort_transactions(list(view.values())))
        return tuple(view.values())

    def get_account(self, account_id: str | None) -> Account | None:
        if not account_id:
            return None
        return self._view(Collection.ACCOUNTS.value).get(account_id)

    def get_category(self, category_id: str | None) -> Category | None:
        if not category_id:
            return None
        return self._view(Collection.CATEGORIES.value).get(category_id)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return self._view(Collection.TRANSACTIONS.value).get(transaction_id)

    def transactions_for_account(self, account_id: str) -> list[Transaction]:
        """계좌를 참조하는 거래 목록"""
        return [t for t in self.transactions if t.references_account(account_id)]

    def snapshot(self) -> MirrorSnapshot:
        """현재 상태의 읽기 전용 사본"""
        return MirrorSnapshot(
            accounts=self.accounts,
            categories=self.categories,
            transactions=self.transactions,
        )

    def version(self, collection: str) -> int:
        """컬렉션 스냅샷 수신 횟수"""
        return self._versions[collection]

    def is_loaded(self, collection: str | None = None) -> bool:
        """스냅샷 수신 여부 (collection 미지정 시 전체)"""
        if collection is not None:
            return collection in self._loaded
        return all(c.value in self._loaded for c in Collection)

    # -------------------------------------------------------------------------
    # 구독자 / 수명 주기
    # -------------------------------------------------------------------------

    def add_listener(self, listener: MirrorListener) -> Callable[[], None]:
        """변경 알림 구독

        Returns:
            구독 해제 함수
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, collection: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(collection)
            except Exception as e:
                logger.error(f"Mirror listener error: {collection}: {e}")

    def clear(self) -> None:
        """모든 데이터 폐기 (로그아웃 시)"""
        for collection in self._docs:
            self._docs[collection] = {}
            self._provisional[collection] = {}
        self._loaded.clear()

        logger.info("Local mirror cleared")

        for collection in self._docs:
            self._emit(collection)
