"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from adapters.models import (
    AuthUser,
    ErrorCallback,
    SnapshotCallback,
    Subscription,
    Write,
)


@runtime_checkable
class ILedgerStore(Protocol):
    """Ledger Store 인터페이스

    한 사용자 범위로 격리된 accounts / categories / transactions 컬렉션.
    금액은 반드시 Decimal 타입 사용.
    """

    @property
    def supports_batch(self) -> bool:
        """여러 문서 쓰기를 하나의 트랜잭션으로 처리할 수 있는지 여부"""
        ...

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        """문서 생성

        Returns:
            저장소가 부여한 문서 ID
        """
        ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
    ) -> None:
        """문서 부분 수정

        Increment 값은 원자적 가산으로 처리.

        Raises:
            KeyError: 문서가 없는 경우
        """
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """문서 삭제"""
        ...

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """커밋된 단일 문서 조회 (id 포함, 없으면 None)"""
        ...

    async def batch(self, writes: list[Write]) -> list[str | None]:
        """여러 쓰기를 원자적으로 커밋 (supports_batch일 때만)

        Returns:
            쓰기별 문서 ID (create는 새 ID)
        """
        ...

    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """컬렉션 변경 구독

        구독 즉시 현재 전체 문서 집합을 전달하고,
        이후 커밋마다 전체 문서 집합을 다시 전달한다.
        """
        ...


# 동기 함수 또는 코루틴 함수 모두 허용 (제공자가 결과를 await)
AuthChangeCallback = Callable[[AuthUser | None], Awaitable[None] | None]


@runtime_checkable
class IIdentityProvider(Protocol):
    """인증 제공자 인터페이스

    로그인/로그아웃 시 on_auth_change 콜백으로 사용자 변경을 알린다.
    """

    @property
    def current_user(self) -> AuthUser | None:
        """현재 로그인 사용자"""
        ...

    async def sign_up(self, email: str, password: str) -> AuthUser:
        """이메일/비밀번호 가입 (가입 후 로그인 상태)"""
        ...

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """이메일/비밀번호 로그인"""
        ...

    async def sign_in_with_federated_provider(self, id_token: str) -> AuthUser:
        """외부 제공자 ID 토큰으로 로그인"""
        ...

    async def sign_out(self) -> None:
        """로그아웃"""
        ...

    def on_auth_change(self, callback: AuthChangeCallback) -> Callable[[], None]:
        """사용자 변경 구독

        Returns:
            구독 해제 함수
        """
        ...


@runtime_checkable
class INotifier(Protocol):
    """알림 서비스 인터페이스

    부분 쓰기 경고, 잔고 불일치 등을 외부 서비스로 전송.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...
