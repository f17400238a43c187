"""
로컬 인증 제공자 테스트

비밀번호 해시, 가입/로그인, 외부 제공자 ID 토큰 검증, 인증 상태 알림 테스트
"""

from pathlib import Path
from unittest.mock import AsyncMock

import jwt
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.identity.local_provider import (
    LocalIdentityProvider,
    hash_password,
    verify_password,
)
from adapters.interfaces import IIdentityProvider
from adapters.models import AuthUser
from core.config.loader import AuthConfig
from core.errors import AuthError

FEDERATED_SECRET = "federated-test-secret-0123456789abcdef"
ISSUER = "https://id.example.com"


class TestPasswordHash:
    """hash_password / verify_password 테스트 (bcrypt)"""

    def test_verify_correct_password(self) -> None:
        encoded = hash_password("secret1", rounds=4)

        assert encoded.startswith("$2b$04$")
        assert verify_password("secret1", encoded) is True

    def test_verify_wrong_password(self) -> None:
        encoded = hash_password("secret1", rounds=4)

        assert verify_password("secret2", encoded) is False

    def test_salt_differs(self) -> None:
        """같은 비밀번호도 매번 다른 해시"""
        assert hash_password("secret1", 4) != hash_password("secret1", 4)

    def test_non_ascii_password(self) -> None:
        encoded = hash_password("비밀번호123", rounds=4)

        assert verify_password("비밀번호123", encoded) is True

    @pytest.mark.parametrize("encoded", ["", "plain", "pbkdf2_sha256$1000$aa$bb"])
    def test_malformed_hash(self, encoded: str) -> None:
        assert verify_password("secret1", encoded) is False


class TestLocalIdentityProvider:
    """LocalIdentityProvider 테스트"""

    @pytest_asyncio.fixture
    async def db(self, tmp_path: Path) -> SQLiteAdapter:
        adapter = SQLiteAdapter(tmp_path / "identity.db")
        await adapter.connect()
        await init_schema(adapter)
        yield adapter
        await adapter.close()

    @pytest.fixture
    def identity(self, db: SQLiteAdapter) -> LocalIdentityProvider:
        return LocalIdentityProvider(
            db, AuthConfig(federated_secret=FEDERATED_SECRET, federated_issuer=ISSUER)
        )

    def test_implements_protocol(self, identity: LocalIdentityProvider) -> None:
        assert isinstance(identity, IIdentityProvider)

    @pytest.mark.asyncio
    async def test_sign_up_and_sign_in(self, identity: LocalIdentityProvider) -> None:
        """가입 후 같은 자격 증명으로 로그인"""
        created = await identity.sign_up(" Me@Example.com ", "secret1")
        await identity.sign_out()

        user = await identity.sign_in("me@example.com", "secret1")

        assert user.uid == created.uid
        assert user.email == "me@example.com"
        assert user.provider == "password"
        assert identity.current_user == user

    @pytest.mark.asyncio
    async def test_duplicate_email(self, identity: LocalIdentityProvider) -> None:
        await identity.sign_up("me@example.com", "secret1")

        with pytest.raises(AuthError, match="already registered"):
            await identity.sign_up("ME@example.com", "secret2")

    @pytest.mark.asyncio
    async def test_short_password(self, identity: LocalIdentityProvider) -> None:
        with pytest.raises(AuthError, match="at least"):
            await identity.sign_up("me@example.com", "123")

    @pytest.mark.asyncio
    async def test_long_password(self, identity: LocalIdentityProvider) -> None:
        """bcrypt 입력 한도 초과"""
        with pytest.raises(AuthError, match="at most"):
            await identity.sign_up("me@example.com", "x" * 73)

    @pytest.mark.asyncio
    async def test_stores_bcrypt_hash(
        self, identity: LocalIdentityProvider, db: SQLiteAdapter
    ) -> None:
        await identity.sign_up("me@example.com", "secret1")

        row = await db.fetchone("SELECT password_hash FROM users")

        assert row[0].startswith("$2b$")
        assert verify_password("secret1", row[0]) is True

    @pytest.mark.asyncio
    async def test_invalid_email(self, identity: LocalIdentityProvider) -> None:
        with pytest.raises(AuthError, match="valid email"):
            await identity.sign_up("not-an-email", "secret1")

    @pytest.mark.asyncio
    async def test_wrong_password(self, identity: LocalIdentityProvider) -> None:
        await identity.sign_up("me@example.com", "secret1")
        await identity.sign_out()

        with pytest.raises(AuthError, match="Invalid email or password"):
            await identity.sign_in("me@example.com", "wrong-password")

        assert identity.current_user is None

    @pytest.mark.asyncio
    async def test_unknown_email(self, identity: LocalIdentityProvider) -> None:
        with pytest.raises(AuthError, match="Invalid email or password"):
            await identity.sign_in("ghost@example.com", "secret1")

    @pytest.mark.asyncio
    async def test_auth_change_callbacks(self, identity: LocalIdentityProvider) -> None:
        """동기/비동기 콜백 모두 호출"""
        seen: list[AuthUser | None] = []
        async_callback = AsyncMock()

        identity.on_auth_change(seen.append)
        identity.on_auth_change(async_callback)

        user = await identity.sign_up("me@example.com", "secret1")
        await identity.sign_out()

        assert seen == [user, None]
        assert async_callback.await_count == 2
        async_callback.assert_awaited_with(None)

    @pytest.mark.asyncio
    async def test_unsubscribe(self, identity: LocalIdentityProvider) -> None:
        seen: list[AuthUser | None] = []
        unsubscribe = identity.on_auth_change(seen.append)

        unsubscribe()
        await identity.sign_up("me@example.com", "secret1")

        assert seen == []

    @pytest.mark.asyncio
    async def test_federated_sign_in(
        self,
        identity: LocalIdentityProvider,
        db: SQLiteAdapter,
    ) -> None:
        """ID 토큰 검증 후 사용자 생성, 재로그인 시 같은 uid"""
        token = jwt.encode(
            {"sub": "42", "iss": ISSUER, "email": "fed@example.com", "name": "Fed"},
            FEDERATED_SECRET,
            algorithm="HS256",
        )

        first = await identity.sign_in_with_federated_provider(token)
        second = await identity.sign_in_with_federated_provider(token)

        assert first.uid == f"{ISSUER}:42"
        assert first.display_name == "Fed"
        assert first.provider == ISSUER
        assert second.uid == first.uid

        rows = await db.fetchall("SELECT uid FROM users")
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_federated_bad_signature(self, identity: LocalIdentityProvider) -> None:
        token = jwt.encode(
            {"sub": "42", "iss": ISSUER},
            "another-secret-0123456789abcdef0123",
            algorithm="HS256",
        )

        with pytest.raises(AuthError, match="Invalid id token"):
            await identity.sign_in_with_federated_provider(token)

    @pytest.mark.asyncio
    async def test_federated_wrong_issuer(self, identity: LocalIdentityProvider) -> None:
        token = jwt.encode(
            {"sub": "42", "iss": "https://evil.example.com"},
            FEDERATED_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthError):
            await identity.sign_in_with_federated_provider(token)

    @pytest.mark.asyncio
    async def test_federated_not_configured(self, db: SQLiteAdapter) -> None:
        identity = LocalIdentityProvider(
            db, AuthConfig(federated_secret="", federated_issuer=None)
        )

        with pytest.raises(AuthError, match="not configured"):
            await identity.sign_in_with_federated_provider("anything")
