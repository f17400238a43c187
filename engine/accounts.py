"""
계좌 / 카테고리 서비스

계좌와 카테고리의 생성, 수정, 삭제.
계좌 잔고는 거래(Command Processor) 또는 수동 보정으로만 바뀐다.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from adapters.interfaces import ILedgerStore
from adapters.models import Increment
from core.constants import Defaults
from core.domain.models import Account, Category
from core.errors import NotFoundError, ValidationError
from core.ledger.accumulator import normalize_balance
from core.types import AccountType, CategoryType, Collection
from engine.mirror.local_mirror import LocalMirror

logger = logging.getLogger(__name__)


ACCOUNTS = Collection.ACCOUNTS.value
CATEGORIES = Collection.CATEGORIES.value


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required", field="name")
    return name


def _parse_enum(enum_cls: Any, value: Any, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(
            f"Invalid {field}: {value!r} (allowed: {allowed})", field=field
        ) from None


class AccountService:
    """계좌 서비스

    Args:
        store: 사용자 범위 Ledger Store
        mirror: 존재 확인/참조 확인용 Local Mirror
        precision: 금액 정밀도

    사용 예시:
    ```python
    accounts = AccountService(store, mirror)

    account_id = await accounts.create_account("Wallet", "cash", "100")
    await accounts.update_account(account_id, name="Pocket")   # 잔고 불변
    await accounts.correct_balance(account_id, "80")           # 수동 보정
    ```
    """

    def __init__(
        self,
        store: ILedgerStore,
        mirror: LocalMirror,
        precision: Decimal = Defaults.AMOUNT_PRECISION,
    ):
        self.store = store
        self.mirror = mirror
        self.precision = precision

    async def create_account(
        self,
        name: str,
        type: str,
        balance: Any = None,
        color: str | None = None,
    ) -> str:
        """계좌 생성 (opening_balance = 초기 잔고)"""
        opening = normalize_balance(balance, self.precision)
        fields = {
            "name": _require_name(name),
            "type": _parse_enum(AccountType, type, "type"),
            "balance": opening,
            "opening_balance": opening,
            "color": color or Defaults.ACCOUNT_COLOR,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        account_id = await self.store.create(ACCOUNTS, fields)

        logger.info(
            "Account created",
            extra={"account_id": account_id, "balance": str(opening)},
        )
        return account_id

    async def update_account(
        self,
        account_id: str,
        name: str | None = None,
        type: str | None = None,
        color: str | None = None,
    ) -> None:
        """계좌 정보 수정 (잔고는 변경하지 않음)"""
        self._require(account_id)

        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = _require_name(name)
        if type is not None:
            fields["type"] = _parse_enum(AccountType, type, "type")
        if color is not None:
            fields["color"] = color

        if not fields:
            return

        await self.store.update(ACCOUNTS, account_id, fields)
        logger.info("Account updated", extra={"account_id": account_id})

    async def correct_balance(self, account_id: str, new_balance: Any) -> Decimal:
        """잔고 수동 보정

        balance와 opening_balance를 같은 차이만큼 이동시켜
        거래 합계와의 정합 관계를 유지한다.

        Returns:
            적용된 차이
        """
        account = self._require(account_id)
        target = normalize_balance(new_balance, self.precision)
        difference = target - account.balance

        if difference == 0:
            return difference

        await self.store.update(
            ACCOUNTS,
            account_id,
            {
                "balance": Increment(difference),
                "opening_balance": Increment(difference),
            },
        )

        logger.info(
            "Account balance corrected",
            extra={"account_id": account_id, "difference": str(difference)},
        )
        return difference

    async def delete_account(self, account_id: str, force: bool = False) -> int:
        """계좌 삭제

        참조하는 거래가 있으면 거부 (force=True면 거래는 남기고 삭제).

        Returns:
            남겨진(고아가 된) 거래 수
        """
        self._require(account_id)
        referencing = self.mirror.transactions_for_account(account_id)

        if referencing and not force:
            raise ValidationError(
                f"Account is referenced by {len(referencing)} transaction(s)",
                field="account_id",
            )

        await self.store.delete(ACCOUNTS, account_id)

        if referencing:
            logger.warning(
                "Account deleted with referencing transactions",
                extra={"account_id": account_id, "orphaned": len(referencing)},
            )
        else:
            logger.info("Account deleted", extra={"account_id": account_id})

        return len(referencing)

    def _require(self, account_id: str) -> Account:
        account = self.mirror.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}", field="account_id")
        return account


class CategoryService:
    """카테고리 서비스

    카테고리 삭제는 거래에 전파하지 않는다 (표시 시 Uncategorized로 대체).
    """

    def __init__(self, store: ILedgerStore, mirror: LocalMirror):
        self.store = store
        self.mirror = mirror

    async def create_category(
        self,
        name: str,
        type: str,
        color: str | None = None,
    ) -> str:
        category_id = await self.store.create(
            CATEGORIES,
            {
                "name": _require_name(name),
                "type": _parse_enum(CategoryType, type, "type"),
                "color": color or Defaults.CATEGORY_COLOR,
            },
        )
        logger.info("Category created", extra={"category_id": category_id})
        return category_id

    async def update_category(
        self,
        category_id: str,
        name: str | None = None,
        type: str | None = None,
        color: str | None = None,
    ) -> None:
        self._require(category_id)

        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = _require_name(name)
        if type is not None:
            fields["type"] = _parse_enum(CategoryType, type, "type")
        if color is not None:
            fields["color"] = color

        if fields:
            await self.store.update(CATEGORIES, category_id, fields)
            logger.info("Category updated", extra={"category_id": category_id})

    async def delete_category(self, category_id: str) -> None:
        self._require(category_id)
        await self.store.delete(CATEGORIES, category_id)
        logger.info("Category deleted", extra={"category_id": category_id})

    def _require(self, category_id: str) -> Category:
        category = self.mirror.get_category(category_id)
        if category is None:
            raise NotFoundError(
                f"Category not found: {category_id}", field="category_id"
            )
        return category
