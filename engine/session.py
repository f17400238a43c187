"""
세션 수명 주기

인증 상태 변경에 따라 사용자별 실행 컨텍스트를 만들고 정리.

로그인: 사용자 범위 Store → Local Mirror 구독 → Processor/Service 구성
로그아웃: 모든 구독 취소 → Mirror 비우기 → 컨텍스트 폐기
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable

from adapters.interfaces import IIdentityProvider, ILedgerStore, INotifier
from adapters.models import AuthUser, Subscription
from core.constants import Defaults
from core.errors import AuthError
from core.types import Collection
from engine.accounts import AccountService, CategoryService
from engine.command.processor import TransactionCommandProcessor
from engine.mirror.local_mirror import LocalMirror
from engine.projector.view_projection import DashboardSnapshot, project
from engine.reconciler.drift import BalanceDrift, DriftDetector

logger = logging.getLogger(__name__)


StoreFactory = Callable[[AuthUser], ILedgerStore]


@dataclass
class SessionContext:
    """로그인 사용자 한 명의 실행 컨텍스트"""

    user: AuthUser
    store: ILedgerStore
    mirror: LocalMirror
    processor: TransactionCommandProcessor
    accounts: AccountService
    categories: CategoryService
    subscriptions: list[Subscription] = field(default_factory=list)

    def dashboard(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> DashboardSnapshot:
        """현재 Mirror 기준 대시보드"""
        return project(self.mirror.snapshot(), start=start, end=end)

    def detect_drift(self) -> list[BalanceDrift]:
        """현재 Mirror 기준 잔고 불일치"""
        return DriftDetector().detect(self.mirror.snapshot())


class SessionManager:
    """세션 관리자

    Args:
        identity: 인증 제공자
        store_factory: 사용자 → 사용자 범위 Ledger Store
        notifier: 부분 쓰기 알림 (선택)
        precision: 금액 정밀도
        optimistic: 낙관적 갱신 사용 여부

    사용 예시:
    ```python
    sessions = SessionManager(identity, lambda user: SQLiteLedgerStore(db, user.uid))
    sessions.start()

    await identity.sign_in("me@example.com", "secret1")
    ctx = sessions.require_context()
    await ctx.processor.create(request)

    await identity.sign_out()   # 구독 취소, Mirror 비움
    ```
    """

    def __init__(
        self,
        identity: IIdentityProvider,
        store_factory: StoreFactory,
        notifier: INotifier | None = None,
        precision: Decimal = Defaults.AMOUNT_PRECISION,
        optimistic: bool = False,
    ):
        self.identity = identity
        self.store_factory = store_factory
        self.notifier = notifier
        self.precision = precision
        self.optimistic = optimistic

        self._context: SessionContext | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._lock = asyncio.Lock()

    @property
    def context(self) -> SessionContext | None:
        return self._context

    def require_context(self) -> SessionContext:
        """로그인 컨텍스트 반환

        Raises:
            AuthError: 로그인 상태가 아님
        """
        if self._context is None:
            raise AuthError("Not signed in")
        return self._context

    def start(self) -> None:
        """인증 상태 구독 시작"""
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.on_auth_change(self.handle_auth_change)

    async def stop(self) -> None:
        """구독 해제 및 컨텍스트 정리"""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        async with self._lock:
            self._teardown()

    async def handle_auth_change(self, user: AuthUser | None) -> None:
        """인증 상태 변경 처리"""
        async with self._lock:
            if user is None:
                self._teardown()
                return

            if self._context is not None:
                if self._context.user.uid == user.uid:
                    return
                self._teardown()

            self._context = await self._build(user)

    async def _build(self, user: AuthUser) -> SessionContext:
        store = self.store_factory(user)
        mirror = LocalMirror()

        context = SessionContext(
            user=user,
            store=store,
            mirror=mirror,
            processor=TransactionCommandProcessor(
                store,
                mirror,
                notifier=self.notifier,
                precision=self.precision,
                optimistic=self.optimistic,
            ),
            accounts=AccountService(store, mirror, precision=self.precision),
            categories=CategoryService(store, mirror),
        )

        try:
            for collection in Collection:
                context.subscriptions.append(
                    await store.subscribe(
                        collection.value,
                        mirror.snapshot_callback(collection.value),
                        self._subscription_error(user, collection.value),
                    )
                )
        except Exception:
            for sub in context.subscriptions:
                sub.cancel()
            mirror.clear()
            raise

        logger.info(
            "Session started",
            extra={"uid": user.uid, "subscriptions": len(context.subscriptions)},
        )
        return context

    def _teardown(self) -> None:
        context = self._context
        if context is None:
            return

        for sub in context.subscriptions:
            sub.cancel()
        context.subscriptions.clear()
        context.mirror.clear()
        self._context = None

        logger.info("Session ended", extra={"uid": context.user.uid})

    @staticmethod
    def _subscription_error(user: AuthUser, collection: str) -> Callable[[Exception], None]:
        def on_error(error: Exception) -> None:
            logger.error(
                f"Subscription error: {collection}: {error}",
                extra={"uid": user.uid},
            )

        return on_error
