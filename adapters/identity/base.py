"""
인증 제공자 공통 베이스

현재 사용자 보관과 on_auth_change 구독자 알림을 담당.
"""

import inspect
import logging
from typing import Callable

from adapters.interfaces import AuthChangeCallback
from adapters.models import AuthUser

logger = logging.getLogger(__name__)


class AuthStateEmitter:
    """인증 상태 변경 알림 베이스

    콜백은 등록 순서대로 호출되며, 코루틴을 반환하면 완료까지 기다린다.
    """

    def __init__(self) -> None:
        self._current: AuthUser | None = None
        self._listeners: list[AuthChangeCallback] = []

    @property
    def current_user(self) -> AuthUser | None:
        return self._current

    def on_auth_change(self, callback: AuthChangeCallback) -> Callable[[], None]:
        """사용자 변경 구독

        Returns:
            구독 해제 함수
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def _set_current(self, user: AuthUser | None) -> None:
        """현재 사용자 변경 후 구독자 알림"""
        self._current = user

        logger.info(
            "Auth state changed",
            extra={"uid": user.uid if user else None},
        )

        for listener in list(self._listeners):
            result = listener(user)
            if inspect.isawaitable(result):
                await result
