"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    db_path_for_mode,
    init_schema,
)

__all__ = [
    "SQLiteAdapter",
    "db_path_for_mode",
    "create_connection",
    "init_schema",
]
