"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    db_path_for_mode,
    init_schema,
)
from core.constants import Paths
from core.types import AppMode


class TestDbPathForMode:
    """db_path_for_mode 테스트"""

    def test_production_mode(self) -> None:
        """Production 모드"""
        path = db_path_for_mode(AppMode.PRODUCTION)

        assert path == Paths.PROD_DB
        assert isinstance(path, Path)

    def test_development_mode(self) -> None:
        """Development 모드"""
        assert db_path_for_mode(AppMode.DEVELOPMENT) == Paths.DEV_DB

    def test_string_mode(self) -> None:
        """문자열 모드 (대소문자 무시)"""
        assert db_path_for_mode("PRODUCTION") == Paths.PROD_DB
        assert db_path_for_mode("development") == Paths.DEV_DB


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        conn = await create_connection(tmp_path / "test.db")

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_execute_without_connection(self, tmp_path: Path) -> None:
        """연결 전 실행 시 에러"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError, match="Not connected"):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_execute_and_fetch(self, adapter: SQLiteAdapter) -> None:
        """SQL 실행 및 조회"""
        await adapter.execute("CREATE TABLE test (id INTEGER PRIMARY KEY, name TEXT)")
        await adapter.execute("INSERT INTO test (name) VALUES (?)", ("테스트",))
        await adapter.execute("INSERT INTO test (name) VALUES (?)", ("두번째",))
        await adapter.commit()

        row = await adapter.fetchone("SELECT name FROM test WHERE id = 1")
        rows = await adapter.fetchall("SELECT name FROM test ORDER BY id")

        assert row[0] == "테스트"
        assert [r[0] for r in rows] == ["테스트", "두번째"]

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()

        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO tx_test (id) VALUES (1)")
            await conn.execute("INSERT INTO tx_test (id) VALUES (2)")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백"""
        await adapter.execute("CREATE TABLE tx_test2 (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO tx_test2 (id) VALUES (1)")
                raise ValueError("의도적 에러")

        rows = await adapter.fetchall("SELECT id FROM tx_test2")
        assert len(rows) == 0
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_nested_transaction_rolls_back_outer(self, adapter: SQLiteAdapter) -> None:
        """중첩 블록 실패 시 바깥 블록 전체 롤백"""
        await adapter.execute("CREATE TABLE tx_test3 (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test3 (id) VALUES (1)")
                async with adapter.transaction():
                    assert adapter.in_transaction is True
                    await adapter.execute("INSERT INTO tx_test3 (id) VALUES (2)")
                raise ValueError("바깥 블록 실패")

        rows = await adapter.fetchall("SELECT id FROM tx_test3")
        assert rows == []

    @pytest.mark.asyncio
    async def test_commit_deferred_inside_transaction(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 블록 안의 commit()은 블록 종료까지 보류"""
        await adapter.execute("CREATE TABLE tx_test4 (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test4 (id) VALUES (1)")
                await adapter.commit()
                raise ValueError("롤백")

        rows = await adapter.fetchall("SELECT id FROM tx_test4")
        assert rows == []

    @pytest.mark.asyncio
    async def test_concurrent_blocks_are_serialized(self, adapter: SQLiteAdapter) -> None:
        """다른 태스크의 트랜잭션 블록은 겹치지 않음"""
        events: list[str] = []

        async def block(name: str) -> None:
            async with adapter.transaction():
                events.append(f"enter-{name}")
                await asyncio.sleep(0.01)
                events.append(f"exit-{name}")

        await asyncio.gather(block("a"), block("b"))

        assert events == ["enter-a", "exit-a", "enter-b", "exit-b"]

    @pytest.mark.asyncio
    async def test_failing_block_rolls_back_only_its_own_writes(
        self, adapter: SQLiteAdapter
    ) -> None:
        """동시에 열린 다른 블록이 있어도 실패한 블록의 쓰기는 롤백"""
        await adapter.execute("CREATE TABLE tx_test5 (id INTEGER)")
        await adapter.commit()

        async def slow_ok() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test5 (id) VALUES (1)")
                await asyncio.sleep(0.01)
                await adapter.execute("INSERT INTO tx_test5 (id) VALUES (2)")

        async def failing() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test5 (id) VALUES (99)")
                raise ValueError("실패")

        results = await asyncio.gather(slow_ok(), failing(), return_exceptions=True)

        assert results[0] is None
        assert isinstance(results[1], ValueError)
        rows = await adapter.fetchall("SELECT id FROM tx_test5 ORDER BY id")
        assert [r[0] for r in rows] == [1, 2]
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False

        await adapter.execute("CREATE TABLE existing (id INTEGER)")
        await adapter.commit()

        assert await adapter.table_exists("existing") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True

        # 컨텍스트 종료 후 연결 해제 확인
        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    @pytest.mark.asyncio
    async def test_init_schema_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            for table in ("users", "accounts", "categories", "transactions"):
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """스키마 초기화 멱등성 (여러 번 실행 가능)"""
        async with SQLiteAdapter(tmp_path / "idempotent_test.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            assert await adapter.table_exists("transactions") is True

    @pytest.mark.asyncio
    async def test_transactions_schema(self, tmp_path: Path) -> None:
        """transactions 스키마 확인 (금액 TEXT, 명시적 입금 계좌 컬럼)"""
        async with SQLiteAdapter(tmp_path / "tx_schema_test.db") as adapter:
            await init_schema(adapter)

            rows = await adapter.fetchall("PRAGMA table_info(transactions)")
            columns = {row[1]: row[2] for row in rows}

            assert columns["amount"] == "TEXT"
            assert "to_account_id" in columns
            assert "user_id" in columns

    @pytest.mark.asyncio
    async def test_user_email_unique(self, tmp_path: Path) -> None:
        """users.email UNIQUE 제약조건"""
        async with SQLiteAdapter(tmp_path / "unique_test.db") as adapter:
            await init_schema(adapter)

            await adapter.execute(
                "INSERT INTO users (uid, email) VALUES (?, ?)", ("u1", "a@example.com")
            )
            await adapter.commit()

            with pytest.raises(aiosqlite.IntegrityError):
                await adapter.execute(
                    "INSERT INTO users (uid, email) VALUES (?, ?)", ("u2", "a@example.com")
                )
