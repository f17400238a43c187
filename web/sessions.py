"""
Web 세션 레지스트리

로그인한 사용자마다 인증 클라이언트(LocalIdentityProvider)와
SessionManager를 하나씩 보관. uid로 조회.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.identity.local_provider import LocalIdentityProvider
from adapters.interfaces import INotifier
from adapters.models import AuthUser
from adapters.store.sqlite_store import SQLiteLedgerStore
from core.config.loader import Settings
from engine.session import SessionContext, SessionManager

logger = logging.getLogger(__name__)


SignInAction = Callable[[LocalIdentityProvider], Awaitable[AuthUser]]


@dataclass
class WebSession:
    """사용자 한 명의 인증 클라이언트 + 세션"""

    identity: LocalIdentityProvider
    manager: SessionManager


class SessionRegistry:
    """uid → WebSession

    사용 예시:
    ```python
    registry = SessionRegistry(db, settings)
    user = await registry.sign_in("me@example.com", "secret1")

    ctx = registry.get(user.uid)
    await registry.sign_out(user.uid)
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        settings: Settings,
        notifier: INotifier | None = None,
    ):
        self.db = db
        self.settings = settings
        self.notifier = notifier
        self._sessions: dict[str, WebSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def sign_up(self, email: str, password: str) -> AuthUser:
        return await self._open(lambda identity: identity.sign_up(email, password))

    async def sign_in(self, email: str, password: str) -> AuthUser:
        return await self._open(lambda identity: identity.sign_in(email, password))

    async def sign_in_federated(self, id_token: str) -> AuthUser:
        return await self._open(
            lambda identity: identity.sign_in_with_federated_provider(id_token)
        )

    def get(self, uid: str) -> SessionContext | None:
        """활성 세션 컨텍스트 (없으면 None)"""
        session = self._sessions.get(uid)
        if session is None:
            return None
        return session.manager.context

    async def sign_out(self, uid: str) -> None:
        session = self._sessions.pop(uid, None)
        if session is None:
            return
        await session.identity.sign_out()
        await session.manager.stop()

    async def close_all(self) -> None:
        for uid in list(self._sessions):
            await self.sign_out(uid)

    async def _open(self, action: SignInAction) -> AuthUser:
        """새 인증 클라이언트로 로그인하고 세션 등록

        같은 uid의 기존 세션은 새 세션으로 교체.
        """
        identity = LocalIdentityProvider(self.db, self.settings.auth)
        manager = SessionManager(
            identity,
            lambda user: SQLiteLedgerStore(self.db, user.uid),
            notifier=self.notifier,
            precision=self.settings.amount_precision,
            optimistic=self.settings.optimistic_updates,
        )
        manager.start()

        try:
            user = await action(identity)
        except Exception:
            await manager.stop()
            raise

        previous = self._sessions.pop(user.uid, None)
        if previous is not None:
            await previous.manager.stop()

        self._sessions[user.uid] = WebSession(identity=identity, manager=manager)

        logger.info(
            "Web session opened",
            extra={"uid": user.uid, "active_sessions": len(self._sessions)},
        )
        return user
