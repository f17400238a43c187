"""
엔진 테스트 픽스처

인메모리 Ledger Store와 구독 중인 Local Mirror 제공.

기본 데이터:
- 계좌 A (bank, 100), B (saving, 0)
- 카테고리 food (expense), salary (income)
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.mock.ledger_store import InMemoryLedgerStore
from adapters.mock.notifier import MockNotifier
from adapters.models import Subscription
from core.types import Collection
from engine.command.processor import TransactionCommandProcessor
from engine.mirror.local_mirror import LocalMirror


def seed_ledger(store: InMemoryLedgerStore) -> None:
    """기본 계좌/카테고리 삽입"""
    store.seed("accounts", {
        "id": "A",
        "name": "Checking",
        "type": "bank",
        "balance": Decimal("100"),
        "opening_balance": Decimal("100"),
        "color": "#111111",
        "created_at": "2024-01-01T00:00:00+00:00",
    })
    store.seed("accounts", {
        "id": "B",
        "name": "Savings",
        "type": "saving",
        "balance": Decimal("0"),
        "opening_balance": Decimal("0"),
        "color": "#222222",
        "created_at": "2024-01-02T00:00:00+00:00",
    })
    store.seed("categories", {"id": "food", "name": "Food", "type": "expense", "color": "#FF0000"})
    store.seed("categories", {"id": "salary", "name": "Salary", "type": "income", "color": "#00FF00"})


async def subscribe_mirror(
    store: InMemoryLedgerStore,
    mirror: LocalMirror,
) -> list[Subscription]:
    """세 컬렉션 모두 Mirror에 연결"""
    return [
        await store.subscribe(c.value, mirror.snapshot_callback(c.value))
        for c in Collection
    ]


@pytest_asyncio.fixture
async def store() -> InMemoryLedgerStore:
    store = InMemoryLedgerStore()
    seed_ledger(store)
    return store


@pytest_asyncio.fixture
async def mirror(store: InMemoryLedgerStore) -> LocalMirror:
    mirror = LocalMirror()
    subscriptions = await subscribe_mirror(store, mirror)
    yield mirror
    for sub in subscriptions:
        sub.cancel()


@pytest_asyncio.fixture
async def notifier() -> MockNotifier:
    return MockNotifier()


@pytest_asyncio.fixture
async def processor(
    store: InMemoryLedgerStore,
    mirror: LocalMirror,
    notifier: MockNotifier,
) -> TransactionCommandProcessor:
    return TransactionCommandProcessor(store, mirror, notifier=notifier)


@pytest.fixture
def seed():
    """저장소에 기본 데이터를 넣는 함수 (직접 만든 저장소용)"""
    return seed_ledger


@pytest.fixture
def attach_mirror():
    """저장소를 Mirror에 연결하는 함수 (직접 만든 저장소용)"""
    return subscribe_mirror
