"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 프로세스와 운영 스크립트가 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count, date 사용 금지 (예약어/함수명)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths
from core.types import AppMode

logger = logging.getLogger(__name__)


def db_path_for_mode(mode: AppMode | str) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        mode: 실행 모드 (DEVELOPMENT/PRODUCTION)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if isinstance(mode, str):
        mode = AppMode(mode.lower())

    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    태스크 단위로 직렬화되는 트랜잭션 컨텍스트 매니저 제공
    (같은 태스크의 중첩 블록은 가장 바깥 블록에서만 커밋/롤백).

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as adapter:
        async with adapter.transaction():
            await adapter.execute("UPDATE accounts SET ...")
            await adapter.execute("INSERT INTO transactions ...")
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0
        self._tx_owner: asyncio.Task[Any] | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """트랜잭션 블록이 열려 있는지"""
        return self._tx_depth > 0

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()
        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    def _owns_transaction(self) -> bool:
        """현재 태스크가 열린 트랜잭션 블록의 소유자인지"""
        return self._tx_owner is not None and self._tx_owner is asyncio.current_task()

    async def commit(self) -> None:
        """커밋

        트랜잭션 블록 내부에서는 블록 종료 시 커밋.
        다른 태스크의 블록이 열려 있으면 끝날 때까지 대기한다.
        """
        if self._conn is None or self._owns_transaction():
            return
        async with self._write_lock:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is None:
            return
        if self._owns_transaction():
            await self._conn.rollback()
            return
        async with self._write_lock:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.
        연결 하나를 공유하므로 블록은 태스크 단위로 직렬화된다.
        같은 태스크의 중첩 호출은 가장 바깥 블록만 커밋/롤백한다.
        """
        conn = self._require_conn()

        if self._owns_transaction():
            self._tx_depth += 1
            try:
                yield conn
            finally:
                self._tx_depth -= 1
            return

        async with self._write_lock:
            self._tx_owner = asyncio.current_task()
            self._tx_depth = 1
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()
            finally:
                self._tx_depth = 0
                self._tx_owner = None

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    금액은 Decimal 정밀도 보존을 위해 TEXT로 저장.
    거래 → 계좌 참조에는 외래 키를 두지 않는다
    (계좌 삭제 후에도 거래 기록은 남음).

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # users (로컬 인증 제공자)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS users (
            uid              TEXT PRIMARY KEY,
            email            TEXT UNIQUE,
            password_hash    TEXT,
            display_name     TEXT,
            provider         TEXT NOT NULL DEFAULT 'password',
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # accounts
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            balance          TEXT NOT NULL DEFAULT '0',
            opening_balance  TEXT NOT NULL DEFAULT '0',
            color            TEXT,
            created_at       TEXT NOT NULL
        )
    """)

    # categories
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            color            TEXT
        )
    """)

    # transactions
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            type             TEXT NOT NULL,
            amount           TEXT NOT NULL,
            description      TEXT,
            date             TEXT NOT NULL,
            account_id       TEXT,
            category_id      TEXT,
            to_account_id    TEXT,
            created_at       TEXT NOT NULL
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_accounts_user
        ON accounts(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_categories_user
        ON categories(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_user_created
        ON transactions(user_id, created_at)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
