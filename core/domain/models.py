"""
도메인 모델

계좌, 카테고리, 거래 문서를 불변 데이터 구조로 표현.
저장소 문서(dict) ↔ 도메인 객체 변환을 담당.

거래의 상대방 정보는 유형별 태그드 변형으로 표현:
- IncomeEntry(account_id, category_id)
- ExpenseEntry(account_id, category_id)
- TransferEntry(from_account_id, to_account_id)
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Union

from core.constants import Defaults
from core.types import TransactionType


def to_decimal(value: Any) -> Decimal:
    """저장소 값을 Decimal로 변환 (TEXT 저장 대응)"""
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def to_date(value: Any) -> date:
    """ISO 문자열 또는 date를 date로 변환"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def to_datetime(value: Any) -> datetime:
    """ISO 문자열 또는 datetime을 UTC datetime으로 변환

    naive datetime은 UTC로 간주.
    """
    if isinstance(value, datetime):
        dt = value
    elif value is None or value == "":
        dt = datetime.fromtimestamp(0, tz=timezone.utc)
    else:
        dt = datetime.fromisoformat(str(value))

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Account:
    """계좌

    balance는 "사용자가 보유한 금액"의 기준값.
    opening_balance는 생성 시 잔고 (수동 보정 시 함께 이동).
    """

    id: str
    name: str
    type: str
    balance: Decimal
    opening_balance: Decimal
    color: str = Defaults.ACCOUNT_COLOR
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @staticmethod
    def from_document(doc: dict[str, Any]) -> "Account":
        """저장소 문서에서 생성"""
        balance = to_decimal(doc.get("balance"))
        opening = doc.get("opening_balance")
        return Account(
            id=doc["id"],
            name=doc.get("name", ""),
            type=doc.get("type", "cash"),
            balance=balance,
            # 구버전 문서는 opening_balance가 없음 → 현재 잔고로 간주
            opening_balance=to_decimal(opening) if opening is not None else balance,
            color=doc.get("color") or Defaults.ACCOUNT_COLOR,
            created_at=to_datetime(doc.get("created_at")),
        )

    def to_document(self) -> dict[str, Any]:
        """저장소 문서로 변환 (id 제외)"""
        return {
            "name": self.name,
            "type": self.type,
            "balance": self.balance,
            "opening_balance": self.opening_balance,
            "color": self.color,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Category:
    """카테고리 (수입/지출 분류)"""

    id: str
    name: str
    type: str
    color: str = Defaults.CATEGORY_COLOR

    @staticmethod
    def from_document(doc: dict[str, Any]) -> "Category":
        """저장소 문서에서 생성"""
        return Category(
            id=doc["id"],
            name=doc.get("name", ""),
            type=doc.get("type", "expense"),
            color=doc.get("color") or Defaults.CATEGORY_COLOR,
        )

    def to_document(self) -> dict[str, Any]:
        """저장소 문서로 변환 (id 제외)"""
        return {
            "name": self.name,
            "type": self.type,
            "color": self.color,
        }


@dataclass(frozen=True)
class IncomeEntry:
    """수입: 계좌에 +amount"""

    account_id: str
    category_id: str | None = None

    kind: ClassVar[TransactionType] = TransactionType.INCOME


@dataclass(frozen=True)
class ExpenseEntry:
    """지출: 계좌에 -amount"""

    account_id: str
    category_id: str | None = None

    kind: ClassVar[TransactionType] = TransactionType.EXPENSE


@dataclass(frozen=True)
class TransferEntry:
    """이체: 출금 계좌 -amount, 입금 계좌 +amount"""

    from_account_id: str
    to_account_id: str

    kind: ClassVar[TransactionType] = TransactionType.TRANSFER


Entry = Union[IncomeEntry, ExpenseEntry, TransferEntry]


def entry_accounts(entry: Entry) -> tuple[str, ...]:
    """entry가 참조하는 계좌 ID 목록"""
    if isinstance(entry, TransferEntry):
        return (entry.from_account_id, entry.to_account_id)
    return (entry.account_id,)


def entry_category(entry: Entry) -> str | None:
    """entry가 참조하는 카테고리 ID (이체는 없음)"""
    if isinstance(entry, TransferEntry):
        return None
    return entry.category_id


@dataclass(frozen=True)
class Transaction:
    """거래 기록

    amount는 항상 양수 (크기만 저장). 부호는 entry 유형이 결정.
    """

    id: str
    amount: Decimal
    description: str
    date: date
    entry: Entry
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def type(self) -> str:
        """거래 유형 문자열"""
        return self.entry.kind.value

    @property
    def account_ids(self) -> tuple[str, ...]:
        """참조하는 계좌 ID 목록"""
        return entry_accounts(self.entry)

    @property
    def category_id(self) -> str | None:
        """참조하는 카테고리 ID"""
        return entry_category(self.entry)

    def references_account(self, account_id: str) -> bool:
        """특정 계좌를 참조하는지 여부"""
        return account_id in self.account_ids

    @staticmethod
    def from_document(doc: dict[str, Any]) -> "Transaction":
        """저장소 문서에서 생성

        type=transfer인데 to_account_id가 없는 구버전 문서는
        category_id를 입금 계좌로 해석한다.
        """
        tx_type = TransactionType(doc.get("type", "expense"))
        account_id = doc.get("account_id") or ""
        category_id = doc.get("category_id") or None

        if tx_type == TransactionType.TRANSFER:
            to_account_id = doc.get("to_account_id") or category_id or ""
            entry: Entry = TransferEntry(
                from_account_id=account_id,
                to_account_id=to_account_id,
            )
        elif tx_type == TransactionType.INCOME:
            entry = IncomeEntry(account_id=account_id, category_id=category_id)
        else:
            entry = ExpenseEntry(account_id=account_id, category_id=category_id)

        return Transaction(
            id=doc["id"],
            amount=to_decimal(doc.get("amount")),
            description=doc.get("description") or "",
            date=to_date(doc.get("date")),
            entry=entry,
            created_at=to_datetime(doc.get("created_at")),
        )

    def to_document(self) -> dict[str, Any]:
        """저장소 문서로 변환 (id 제외)"""
        return {
            **entry_fields(self.entry),
            "amount": self.amount,
            "description": self.description,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat(),
        }


def entry_fields(entry: Entry) -> dict[str, Any]:
    """entry를 저장소 필드로 펼침

    이체는 to_account_id를 명시적으로 사용하고 category_id는 비움.
    """
    if isinstance(entry, TransferEntry):
        return {
            "type": entry.kind.value,
            "account_id": entry.from_account_id,
            "category_id": None,
            "to_account_id": entry.to_account_id,
        }
    return {
        "type": entry.kind.value,
        "account_id": entry.account_id,
        "category_id": entry.category_id,
        "to_account_id": None,
    }
