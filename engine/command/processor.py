"""
Transaction Command Processor

거래 생성/수정/삭제를 하나의 논리 연산으로 처리.
검증 → 잔고 변화량 계산 → 저장소 쓰기 흐름.

쓰기 순서: 계좌 잔고 가산(Increment) 먼저, 거래 레코드 마지막.
저장소가 batch를 지원하면 전체를 하나의 트랜잭션으로 커밋하고,
아니면 순차 쓰기 중 실패 시 반영된 쓰기 목록과 함께 StoreWriteError 발생.
자동 재시도/롤백은 하지 않는다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncIterator
from uuid import uuid4

from adapters.interfaces import ILedgerStore, INotifier
from adapters.models import Write, WriteKind
from core.constants import Defaults, Endpoints
from core.domain.models import (
    Account,
    Entry,
    ExpenseEntry,
    IncomeEntry,
    Transaction,
    TransferEntry,
    entry_fields,
    to_date,
)
from core.domain.state_machines import OperationState, OperationStateMachine
from core.errors import (
    AppliedWrite,
    ConfirmationRequired,
    NotFoundError,
    ReferentialGap,
    StoreWriteError,
    ValidationError,
)
from core.ledger.accumulator import (
    BalanceDelta,
    combine,
    effects_of,
    normalize_amount,
    reversal_of,
)
from core.types import Collection, OperationKind, TransactionType
from engine.command.models import CommandResult, Inconsistency, TransactionRequest
from engine.mirror.local_mirror import LocalMirror

logger = logging.getLogger(__name__)


ACCOUNTS = Collection.ACCOUNTS.value
TRANSACTIONS = Collection.TRANSACTIONS.value


class _Operation:
    """진행 중인 논리 연산"""

    def __init__(self, kind: OperationKind, transaction_id: str | None = None):
        self.operation_id = str(uuid4())
        self.kind = kind
        self.transaction_id = transaction_id
        self.machine = OperationStateMachine(self.operation_id)
        self.warnings: list[str] = []


class TransactionCommandProcessor:
    """거래 명령 프로세서

    Local Mirror로 검증하고 Ledger Store에 쓰기.
    같은 거래 ID에 대한 명령은 순서대로 처리 (ID 간 순서는 보장하지 않음).

    Args:
        store: 사용자 범위 Ledger Store
        mirror: 검증에 사용할 Local Mirror
        notifier: 부분 쓰기 알림 (선택)
        precision: 금액 정밀도
        optimistic: 커밋 후 Mirror에 낙관적 갱신 적용 여부

    사용 예시:
    ```python
    processor = TransactionCommandProcessor(store, mirror, notifier=notifier)

    result = await processor.create(TransactionRequest(
        type="transfer",
        amount="30",
        date="2024-05-01",
        from_account_id="A",
        to_account_id="B",
    ))

    await processor.edit(result.transaction_id, {"amount": "40"})
    await processor.delete(result.transaction_id)
    ```
    """

    def __init__(
        self,
        store: ILedgerStore,
        mirror: LocalMirror,
        notifier: INotifier | None = None,
        precision: Decimal = Defaults.AMOUNT_PRECISION,
        optimistic: bool = False,
    ):
        self.store = store
        self.mirror = mirror
        self.notifier = notifier
        self.precision = precision
        self.optimistic = optimistic

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._inconsistencies: list[Inconsistency] = []

        # 통계
        self._processed_count = 0
        self._committed_count = 0
        self._failed_count = 0
        self._rejected_count = 0  # 검증 거부

    # =========================================================================
    # 공개 연산
    # =========================================================================

    async def create(
        self,
        request: TransactionRequest,
        confirm_overdraft: bool = False,
    ) -> CommandResult:
        """거래 생성

        Raises:
            ValidationError: 검증 실패 (쓰기 없음)
            ConfirmationRequired: 이체 출금 계좌 잔고 부족
            StoreWriteError: 저장소 쓰기 실패
        """
        op = _Operation(OperationKind.CREATE)
        self._begin(op)

        try:
            entry, amount, tx_date, description = self._resolve(request)
            deltas = combine(effects_of(entry, amount))
            self._check_overdraft(request, entry, amount, deltas, confirm_overdraft)
        except ValidationError as e:
            self._reject(op, e)
            raise

        created_at = datetime.now(timezone.utc)
        record: dict[str, Any] = {
            **entry_fields(entry),
            "amount": amount,
            "description": description,
            "date": tx_date.isoformat(),
            "created_at": created_at.isoformat(),
        }
        writes = self._balance_writes(deltas) + [Write.create(TRANSACTIONS, record)]

        provisional = self._plan_provisional(deltas)
        versions = self._mirror_versions()

        results = await self._apply(op, writes)
        op.transaction_id = results[-1]
        assert op.transaction_id is not None

        if self.optimistic:
            provisional[TRANSACTIONS] = {
                op.transaction_id: Transaction(
                    id=op.transaction_id,
                    amount=amount,
                    description=description,
                    date=tx_date,
                    entry=entry,
                    created_at=created_at,
                )
            }
            self._publish_provisional(op, provisional, versions)

        return self._commit(op, deltas)

    async def edit(
        self,
        transaction_id: str,
        changes: TransactionRequest | dict[str, Any],
        confirm_overdraft: bool = False,
    ) -> CommandResult:
        """거래 수정

        기존 레코드 자신의 형태로 효과를 완전히 되돌리고,
        새 형태는 생성과 동일하게 해석한다 (외부 계좌 변환 포함).
        계좌별 변화량은 합산되어 한 번씩 쓰이며, 레코드 ID는 유지된다.
        """
        async with self._serialized(transaction_id):
            op = _Operation(OperationKind.EDIT, transaction_id)
            self._begin(op)

            try:
                old = await self._load_transaction(transaction_id)
                request = (
                    changes
                    if isinstance(changes, TransactionRequest)
                    else TransactionRequest.from_transaction(old).merged(changes)
                )
                entry, amount, tx_date, description = self._resolve(request)
                reversal = self._reversible(op, reversal_of(old.entry, old.amount))
                deltas = combine(reversal + effects_of(entry, amount))
                self._check_overdraft(request, entry, amount, deltas, confirm_overdraft)
            except ValidationError as e:
                self._reject(op, e)
                raise

            record: dict[str, Any] = {
                **entry_fields(entry),
                "amount": amount,
                "description": description,
                "date": tx_date.isoformat(),
            }
            writes = self._balance_writes(deltas) + [
                Write.update(TRANSACTIONS, transaction_id, record)
            ]

            provisional = self._plan_provisional(deltas)
            versions = self._mirror_versions()

            await self._apply(op, writes)

            if self.optimistic:
                provisional[TRANSACTIONS] = {
                    transaction_id: replace(
                        old,
                        amount=amount,
                        description=description,
                        date=tx_date,
                        entry=entry,
                    )
                }
                self._publish_provisional(op, provisional, versions)

            return self._commit(op, deltas)

    async def delete(self, transaction_id: str) -> CommandResult:
        """거래 삭제

        효과를 되돌린 뒤 레코드를 삭제한다.
        이미 삭제된 계좌에 대한 되돌리기는 경고 후 생략.
        """
        async with self._serialized(transaction_id):
            op = _Operation(OperationKind.DELETE, transaction_id)
            self._begin(op)

            try:
                old = await self._load_transaction(transaction_id)
            except ValidationError as e:
                self._reject(op, e)
                raise

            deltas = combine(self._reversible(op, reversal_of(old.entry, old.amount)))
            writes = self._balance_writes(deltas) + [
                Write.delete(TRANSACTIONS, transaction_id)
            ]

            provisional = self._plan_provisional(deltas)
            versions = self._mirror_versions()

            await self._apply(op, writes)

            if self.optimistic:
                provisional[TRANSACTIONS] = {transaction_id: None}
                self._publish_provisional(op, provisional, versions)

            return self._commit(op, deltas)

    # =========================================================================
    # 검증 / 해석
    # =========================================================================

    def _resolve(
        self,
        request: TransactionRequest,
    ) -> tuple[Entry, Decimal, Any, str]:
        """요청을 (entry, amount, date, description)으로 해석

        Raises:
            ValidationError: 요청이 유효하지 않은 경우
        """
        try:
            tx_type = TransactionType(request.type)
        except ValueError:
            raise ValidationError(
                f"Unknown transaction type: {request.type!r}", field="type"
            ) from None

        amount = normalize_amount(request.amount, self.precision)

        try:
            tx_date = to_date(request.date)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid date: {request.date!r}", field="date") from None

        description = (request.description or "").strip()

        if tx_type == TransactionType.TRANSFER:
            entry = self._resolve_transfer(request)
        else:
            account_id = self._require_account(request.account_id, "account_id")
            if tx_type == TransactionType.INCOME:
                entry = IncomeEntry(account_id, request.category_id or None)
            else:
                entry = ExpenseEntry(account_id, request.category_id or None)

        self._check_category(entry)
        return entry, amount, tx_date, description

    def _resolve_transfer(self, request: TransactionRequest) -> Entry:
        """이체 상대방 해석

        - external → A: A에 수입
        - A → external: A에서 지출
        - A → B: 이체
        - A → A, external → external: 거부
        """
        source = request.from_account_id or None
        target = request.to_account_id or None

        if source is None:
            raise ValidationError("Transfer source is required", field="from_account_id")
        if target is None:
            raise ValidationError("Transfer destination is required", field="to_account_id")

        source_external = source == Endpoints.EXTERNAL
        target_external = target == Endpoints.EXTERNAL

        if source_external and target_external:
            raise ValidationError(
                "At least one side of a transfer must be a tracked account",
                field="to_account_id",
            )
        if source == target:
            raise ValidationError(
                "Cannot transfer to the same account", field="to_account_id"
            )

        if source_external:
            account_id = self._require_account(target, "to_account_id")
            return IncomeEntry(account_id, request.category_id or None)

        if target_external:
            account_id = self._require_account(source, "from_account_id")
            return ExpenseEntry(account_id, request.category_id or None)

        if request.category_id:
            raise ValidationError(
                "Transfers between accounts have no category", field="category_id"
            )

        return TransferEntry(
            from_account_id=self._require_account(source, "from_account_id"),
            to_account_id=self._require_account(target, "to_account_id"),
        )

    def _require_account(self, account_id: str | None, field: str) -> str:
        if not account_id:
            raise ValidationError("Account is required", field=field)
        if account_id == Endpoints.EXTERNAL:
            raise ValidationError(
                "External endpoint is only valid for transfers", field=field
            )
        if self.mirror.get_account(account_id) is None:
            raise ValidationError(f"Unknown account: {account_id}", field=field)
        return account_id

    def _check_category(self, entry: Entry) -> None:
        """카테고리 존재 및 유형 일치 확인 (미지정 허용)"""
        if isinstance(entry, TransferEntry) or entry.category_id is None:
            return

        category = self.mirror.get_category(entry.category_id)
        if category is None:
            raise ValidationError(
                f"Unknown category: {entry.category_id}", field="category_id"
            )
        if category.type != entry.kind.value:
            raise ValidationError(
                f"Category {category.name!r} is for {category.type}, "
                f"not {entry.kind.value}",
                field="category_id",
            )

    def _check_overdraft(
        self,
        request: TransactionRequest,
        entry: Entry,
        amount: Decimal,
        deltas: list[BalanceDelta],
        confirmed: bool,
    ) -> None:
        """이체 출금 계좌 잔고 부족 확인

        출금 계좌가 실제 계좌인 이체 요청만 대상.
        적용 후 잔고가 음수가 되고 이번 연산이 잔고를 줄이는 경우 확인 요구.
        """
        if confirmed or request.type != TransactionType.TRANSFER.value:
            return

        if isinstance(entry, TransferEntry):
            source_id = entry.from_account_id
        elif isinstance(entry, ExpenseEntry):
            source_id = entry.account_id
        else:
            return

        account = self.mirror.get_account(source_id)
        if account is None:
            return

        delta = sum((d.delta for d in deltas if d.account_id == source_id), Decimal("0"))
        if delta < 0 and account.balance + delta < 0:
            raise ConfirmationRequired(
                f"Insufficient funds in {account.name!r}: "
                f"balance {account.balance}, amount {amount}",
                account_id=source_id,
                balance=account.balance,
                amount=amount,
            )

    async def _load_transaction(self, transaction_id: str) -> Transaction:
        """저장소에 커밋된 레코드 조회 (되돌리기 기준은 Mirror가 아닌 저장소)"""
        doc = await self.store.get(TRANSACTIONS, transaction_id)
        if doc is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return Transaction.from_document(doc)

    def _reversible(
        self,
        op: _Operation,
        deltas: list[BalanceDelta],
    ) -> list[BalanceDelta]:
        """되돌리기 변화량 중 존재하는 계좌만 남김 (누락은 경고로 기록)"""
        kept: list[BalanceDelta] = []
        for d in deltas:
            if self.mirror.get_account(d.account_id) is None:
                gap = ReferentialGap(ACCOUNTS, d.account_id)
                op.warnings.append(str(gap))
                logger.warning(
                    f"Skipping reversal for missing account: {d.account_id}",
                    extra={
                        "operation_id": op.operation_id,
                        "transaction_id": op.transaction_id,
                    },
                )
                continue
            kept.append(d)
        return kept

    # =========================================================================
    # 쓰기
    # =========================================================================

    @staticmethod
    def _balance_writes(deltas: list[BalanceDelta]) -> list[Write]:
        return [
            Write.increment(ACCOUNTS, d.account_id, "balance", d.delta)
            for d in deltas
        ]

    async def _apply(self, op: _Operation, writes: list[Write]) -> list[str | None]:
        """쓰기 계획 실행

        Raises:
            StoreWriteError: 저장소 쓰기 실패 (applied_writes로 부분 반영 확인)
        """
        op.machine.transition(OperationState.APPLYING)

        if self.store.supports_batch:
            try:
                return await self.store.batch(writes)
            except Exception as e:
                raise await self._fail(op, e, []) from e

        applied: list[AppliedWrite] = []
        results: list[str | None] = []

        for write in writes:
            try:
                results.append(await self._write_one(write))
            except Exception as e:
                raise await self._fail(op, e, applied) from e

            applied.append(
                AppliedWrite(
                    collection=write.collection,
                    doc_id=results[-1],
                    kind=write.kind.value,
                    fields=write.fields,
                )
            )

        return results

    async def _write_one(self, write: Write) -> str | None:
        if write.kind == WriteKind.CREATE:
            return await self.store.create(write.collection, write.fields or {})

        assert write.doc_id is not None
        if write.kind == WriteKind.UPDATE:
            await self.store.update(write.collection, write.doc_id, write.fields or {})
        else:
            await self.store.delete(write.collection, write.doc_id)
        return write.doc_id

    async def _fail(
        self,
        op: _Operation,
        error: Exception,
        applied: list[AppliedWrite],
    ) -> StoreWriteError:
        """쓰기 실패 기록 후 호출자가 올릴 StoreWriteError 반환"""
        op.machine.transition(OperationState.FAILED)
        self._failed_count += 1

        store_error = StoreWriteError(
            f"{op.kind.value} failed: {error}",
            applied_writes=applied,
            operation_id=op.operation_id,
        )

        if not store_error.partial:
            logger.warning(
                f"Store write failed, nothing applied: {op.kind.value}",
                extra={"operation_id": op.operation_id, "error": str(error)},
            )
            return store_error

        self._inconsistencies.append(
            Inconsistency(
                operation_id=op.operation_id,
                kind=op.kind.value,
                transaction_id=op.transaction_id,
                applied_writes=tuple(applied),
                error=str(error),
            )
        )

        logger.error(
            f"Partial write: {op.kind.value}",
            extra={
                "operation_id": op.operation_id,
                "transaction_id": op.transaction_id,
                "applied": len(applied),
                "error": str(error),
            },
        )

        if self.notifier is not None:
            await self.notifier.send(
                f"Partial write during transaction {op.kind.value}; "
                f"balances may be inconsistent",
                level="ERROR",
                extra={
                    "operation_id": op.operation_id,
                    "transaction_id": op.transaction_id,
                    "applied_writes": len(applied),
                    "error": str(error),
                },
            )

        return store_error

    # =========================================================================
    # 낙관적 갱신
    # =========================================================================

    def _plan_provisional(
        self,
        deltas: list[BalanceDelta],
    ) -> dict[str, dict[str, Account | Transaction | None]]:
        """쓰기 전 Mirror 기준으로 갱신 후 계좌 값 계산"""
        if not self.optimistic:
            return {}

        accounts: dict[str, Account | Transaction | None] = {}
        for d in deltas:
            account = self.mirror.get_account(d.account_id)
            if account is not None:
                accounts[d.account_id] = replace(account, balance=account.balance + d.delta)
        return {ACCOUNTS: accounts}

    def _mirror_versions(self) -> dict[str, int]:
        return {
            ACCOUNTS: self.mirror.version(ACCOUNTS),
            TRANSACTIONS: self.mirror.version(TRANSACTIONS),
        }

    def _publish_provisional(
        self,
        op: _Operation,
        provisional: dict[str, dict[str, Account | Transaction | None]],
        versions: dict[str, int],
    ) -> None:
        """쓰기 중 새 스냅샷이 도착하지 않은 컬렉션에만 낙관적 갱신 적용"""
        for collection, items in provisional.items():
            if self.mirror.version(collection) != versions[collection]:
                continue
            for doc_id, value in items.items():
                self.mirror.apply_provisional(collection, doc_id, value, op.operation_id)

    # =========================================================================
    # 상태 / 통계
    # =========================================================================

    @asynccontextmanager
    async def _serialized(self, transaction_id: str) -> AsyncIterator[None]:
        """같은 거래 ID의 명령 직렬화 (대기자가 없으면 락 제거)"""
        lock = self._locks.setdefault(transaction_id, asyncio.Lock())
        self._lock_users[transaction_id] = self._lock_users.get(transaction_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[transaction_id] -= 1
            if self._lock_users[transaction_id] == 0:
                del self._lock_users[transaction_id]
                del self._locks[transaction_id]

    @property
    def active_locks(self) -> int:
        """사용 중인 거래 ID 락 수"""
        return len(self._locks)

    def _begin(self, op: _Operation) -> None:
        self._processed_count += 1
        op.machine.transition(OperationState.VALIDATING)

    def _reject(self, op: _Operation, error: ValidationError) -> None:
        op.machine.transition(OperationState.FAILED)
        self._rejected_count += 1
        logger.info(
            f"Transaction {op.kind.value} rejected: {error.message}",
            extra={
                "operation_id": op.operation_id,
                "transaction_id": op.transaction_id,
                "field": error.field,
            },
        )

    def _commit(self, op: _Operation, deltas: list[BalanceDelta]) -> CommandResult:
        op.machine.transition(OperationState.COMMITTED)
        self._committed_count += 1

        assert op.transaction_id is not None
        logger.info(
            f"Transaction {op.kind.value} committed",
            extra={
                "operation_id": op.operation_id,
                "transaction_id": op.transaction_id,
                "deltas": {d.account_id: str(d.delta) for d in deltas},
            },
        )

        return CommandResult(
            operation_id=op.operation_id,
            kind=op.kind.value,
            transaction_id=op.transaction_id,
            state=op.machine.state,
            deltas=tuple(deltas),
            warnings=tuple(op.warnings),
        )

    @property
    def inconsistencies(self) -> list[Inconsistency]:
        """부분 쓰기 기록"""
        return list(self._inconsistencies)

    def get_stats(self) -> dict[str, int]:
        """처리 통계"""
        return {
            "processed": self._processed_count,
            "committed": self._committed_count,
            "failed": self._failed_count,
            "rejected": self._rejected_count,
            "inconsistencies": len(self._inconsistencies),
        }
