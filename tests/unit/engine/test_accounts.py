"""
계좌 / 카테고리 서비스 테스트

계좌 생성/수정/잔고 보정/삭제, 카테고리 관리 테스트
"""

from decimal import Decimal

import pytest

from adapters.mock.ledger_store import InMemoryLedgerStore
from core.errors import NotFoundError, ValidationError
from engine.accounts import AccountService, CategoryService
from engine.command.models import TransactionRequest
from engine.command.processor import TransactionCommandProcessor
from engine.mirror.local_mirror import LocalMirror
from engine.reconciler.drift import DriftDetector


class TestAccountService:
    """AccountService 테스트"""

    @pytest.fixture
    def accounts(self, store: InMemoryLedgerStore, mirror: LocalMirror) -> AccountService:
        return AccountService(store, mirror)

    @pytest.mark.asyncio
    async def test_create_account(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
        mirror: LocalMirror,
    ) -> None:
        """초기 잔고가 opening_balance로 기록"""
        account_id = await accounts.create_account(" Wallet ", "cash", "25.5")

        doc = store.document("accounts", account_id)
        account = mirror.get_account(account_id)

        assert doc["name"] == "Wallet"
        assert doc["balance"] == Decimal("25.50")
        assert doc["opening_balance"] == Decimal("25.50")
        assert doc["created_at"]
        assert account.type == "cash"

    @pytest.mark.asyncio
    async def test_create_account_defaults(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
    ) -> None:
        account_id = await accounts.create_account("Card", "credit")

        assert store.document("accounts", account_id)["balance"] == Decimal("0.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "type_", "balance", "field"),
        [
            ("", "cash", "0", "name"),
            ("Wallet", "crypto", "0", "type"),
            ("Wallet", "cash", "lots", "balance"),
        ],
    )
    async def test_create_account_invalid(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
        name: str,
        type_: str,
        balance: str,
        field: str,
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await accounts.create_account(name, type_, balance)

        assert exc_info.value.field == field
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_update_never_touches_balance(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
    ) -> None:
        await accounts.update_account("A", name="Main", type="cash", color="#ABCDEF")

        doc = store.document("accounts", "A")
        assert doc["name"] == "Main"
        assert doc["type"] == "cash"
        assert doc["color"] == "#ABCDEF"
        assert doc["balance"] == Decimal("100")
        assert "balance" not in store.writes[-1].fields

    @pytest.mark.asyncio
    async def test_update_without_changes(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
    ) -> None:
        await accounts.update_account("A")

        assert store.writes == []

    @pytest.mark.asyncio
    async def test_update_missing_account(self, accounts: AccountService) -> None:
        with pytest.raises(NotFoundError):
            await accounts.update_account("missing", name="x")

    @pytest.mark.asyncio
    async def test_correct_balance_keeps_ledger_consistent(
        self,
        accounts: AccountService,
        processor: TransactionCommandProcessor,
        store: InMemoryLedgerStore,
        mirror: LocalMirror,
    ) -> None:
        """수동 보정 후에도 opening + Σ(거래) = balance"""
        await processor.create(
            TransactionRequest(
                type="expense", amount="30", date="2024-05-01", account_id="A"
            )
        )

        difference = await accounts.correct_balance("A", "90")

        doc = store.document("accounts", "A")
        assert difference == Decimal("20.00")
        assert doc["balance"] == Decimal("90.00")
        assert doc["opening_balance"] == Decimal("120.00")
        assert DriftDetector().detect(mirror.snapshot()) == []

    @pytest.mark.asyncio
    async def test_correct_balance_no_change(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
    ) -> None:
        assert await accounts.correct_balance("A", "100") == 0
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_delete_unreferenced_account(
        self,
        accounts: AccountService,
        store: InMemoryLedgerStore,
    ) -> None:
        assert await accounts.delete_account("B") == 0
        assert store.document("accounts", "B") is None

    @pytest.mark.asyncio
    async def test_delete_referenced_account_requires_force(
        self,
        accounts: AccountService,
        processor: TransactionCommandProcessor,
        store: InMemoryLedgerStore,
    ) -> None:
        """참조 거래가 있으면 거부, force 시 거래는 남기고 삭제"""
        await processor.create(
            TransactionRequest(
                type="transfer",
                amount="10",
                date="2024-05-01",
                from_account_id="A",
                to_account_id="B",
            )
        )

        with pytest.raises(ValidationError, match="referenced"):
            await accounts.delete_account("B")

        orphaned = await accounts.delete_account("B", force=True)

        assert orphaned == 1
        assert store.document("accounts", "B") is None
        assert len(store.documents("transactions")) == 1


class TestCategoryService:
    """CategoryService 테스트"""

    @pytest.fixture
    def categories(self, store: InMemoryLedgerStore, mirror: LocalMirror) -> CategoryService:
        return CategoryService(store, mirror)

    @pytest.mark.asyncio
    async def test_create_and_update(
        self,
        categories: CategoryService,
        store: InMemoryLedgerStore,
    ) -> None:
        category_id = await categories.create_category("Rent", "expense")
        await categories.update_category(category_id, name="Housing", color="#123456")

        assert store.document("categories", category_id) == {
            "id": category_id,
            "name": "Housing",
            "type": "expense",
            "color": "#123456",
        }

    @pytest.mark.asyncio
    async def test_transfer_is_not_a_category_type(self, categories: CategoryService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await categories.create_category("Moves", "transfer")

        assert exc_info.value.field == "type"

    @pytest.mark.asyncio
    async def test_delete_does_not_touch_transactions(
        self,
        categories: CategoryService,
        processor: TransactionCommandProcessor,
        store: InMemoryLedgerStore,
    ) -> None:
        """카테고리 삭제는 거래에 전파하지 않음"""
        result = await processor.create(
            TransactionRequest(
                type="expense",
                amount="10",
                date="2024-05-01",
                account_id="A",
                category_id="food",
            )
        )

        await categories.delete_category("food")

        assert store.document("categories", "food") is None
        assert store.document("transactions", result.transaction_id)["category_id"] == "food"

    @pytest.mark.asyncio
    async def test_missing_category(self, categories: CategoryService) -> None:
        with pytest.raises(NotFoundError):
            await categories.delete_category("missing")
