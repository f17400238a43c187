"""
Ledger Store 구현체

사용자 범위로 격리된 accounts / categories / transactions 저장소.
"""

from adapters.store.sqlite_store import (
    COLLECTION_COLUMNS,
    SQLiteLedgerStore,
)

__all__ = [
    "COLLECTION_COLUMNS",
    "SQLiteLedgerStore",
]
