"""
Mock 어댑터

테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.identity import MockIdentityProvider
from adapters.mock.ledger_store import (
    InMemoryLedgerStore,
    StoreUnavailableError,
    WriteRecord,
)
from adapters.mock.notifier import MockNotifier

__all__ = [
    "InMemoryLedgerStore",
    "MockIdentityProvider",
    "MockNotifier",
    "StoreUnavailableError",
    "WriteRecord",
]
