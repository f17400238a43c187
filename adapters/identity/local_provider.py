"""
로컬 인증 제공자

SQLite users 테이블 기반 이메일/비밀번호 인증.
IIdentityProvider Protocol 준수.

- 비밀번호: bcrypt (salt, cost 포함 해시 문자열로 저장)
- 외부 제공자 로그인: HS256 서명 ID 토큰을 PyJWT로 검증
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import bcrypt
import jwt

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.identity.base import AuthStateEmitter
from adapters.models import AuthUser
from core.config.loader import AuthConfig
from core.errors import AuthError

logger = logging.getLogger(__name__)


BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 6
# bcrypt 입력 한도
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """비밀번호 해시 생성 (bcrypt, "$2b$..." 문자열)"""
    password_bytes = password.encode("utf-8")
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    """비밀번호 해시 검증 (형식이 잘못되면 False)"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


class LocalIdentityProvider(AuthStateEmitter):
    """로컬 인증 제공자

    Args:
        db: 연결된 SQLite 어댑터 (users 테이블 필요)
        auth_config: 외부 제공자 설정

    사용 예시:
    ```python
    identity = LocalIdentityProvider(db, settings.auth)
    identity.on_auth_change(session.handle_auth_change)

    user = await identity.sign_up("me@example.com", "secret1")
    await identity.sign_out()
    ```
    """

    def __init__(self, db: SQLiteAdapter, auth_config: AuthConfig):
        super().__init__()
        self.db = db
        self.auth_config = auth_config

    async def sign_up(self, email: str, password: str) -> AuthUser:
        """이메일/비밀번호 가입 후 로그인"""
        email = self._normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise AuthError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        user = AuthUser(uid=uuid4().hex, email=email)
        password_hash = hash_password(password)

        async with self.db.transaction():
            existing = await self.db.fetchone(
                "SELECT uid FROM users WHERE email = ?", (email,)
            )
            if existing is not None:
                raise AuthError(f"Email already registered: {email}")

            await self.db.execute(
                """
                INSERT INTO users (uid, email, password_hash, display_name, provider, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user.uid,
                    email,
                    password_hash,
                    None,
                    user.provider,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

        logger.info("User registered", extra={"uid": user.uid})

        await self._set_current(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """이메일/비밀번호 로그인"""
        email = self._normalize_email(email)
        row = await self.db.fetchone(
            """
            SELECT uid, email, password_hash, display_name, provider
            FROM users WHERE email = ?
            """,
            (email,),
        )

        if row is None or not row[2] or not verify_password(password or "", row[2]):
            logger.warning("Sign-in rejected", extra={"email": email})
            raise AuthError("Invalid email or password")

        user = AuthUser(uid=row[0], email=row[1], display_name=row[3], provider=row[4])
        await self._set_current(user)
        return user

    async def sign_in_with_federated_provider(self, id_token: str) -> AuthUser:
        """외부 제공자 ID 토큰으로 로그인

        처음 보는 subject이면 users 행을 생성한다.
        """
        claims = self.verify_id_token(id_token)

        provider = str(claims.get("iss") or "federated")
        uid = f"{provider}:{claims['sub']}"
        email = claims.get("email")
        display_name = claims.get("name")

        async with self.db.transaction():
            row = await self.db.fetchone("SELECT uid FROM users WHERE uid = ?", (uid,))
            if row is None:
                await self.db.execute(
                    """
                    INSERT INTO users (uid, email, password_hash, display_name, provider, created_at)
                    VALUES (?, ?, NULL, ?, ?, ?)
                    """,
                    (
                        uid,
                        email,
                        display_name,
                        provider,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                logger.info("Federated user registered", extra={"uid": uid})

        user = AuthUser(uid=uid, email=email, display_name=display_name, provider=provider)
        await self._set_current(user)
        return user

    def verify_id_token(self, id_token: str) -> dict[str, Any]:
        """ID 토큰 검증

        Raises:
            AuthError: 외부 제공자 미설정 또는 토큰 검증 실패
        """
        secret = self.auth_config.federated_secret
        if not secret:
            raise AuthError("Federated sign-in is not configured")

        options: dict[str, Any] = {"require": ["sub"]}
        kwargs: dict[str, Any] = {}
        if self.auth_config.federated_issuer:
            kwargs["issuer"] = self.auth_config.federated_issuer
            options["require"].append("iss")

        try:
            return jwt.decode(
                id_token,
                secret,
                algorithms=["HS256"],
                options=options,
                **kwargs,
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Federated token rejected: {e}")
            raise AuthError(f"Invalid id token: {e}") from e

    async def sign_out(self) -> None:
        """로그아웃"""
        await self._set_current(None)

    @staticmethod
    def _normalize_email(email: str) -> str:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AuthError("A valid email is required")
        return email
