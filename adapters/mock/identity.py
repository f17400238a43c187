"""
Mock 인증 제공자

테스트용 인메모리 Identity Provider.
IIdentityProvider Protocol 준수.
"""

from adapters.identity.base import AuthStateEmitter
from adapters.models import AuthUser
from core.errors import AuthError


class MockIdentityProvider(AuthStateEmitter):
    """Mock 인증 제공자

    비밀번호는 평문으로 보관 (테스트 전용).
    federated 로그인은 id_token을 그대로 uid로 사용.

    사용 예시:
    ```python
    identity = MockIdentityProvider()
    identity.on_auth_change(session.handle_auth_change)

    await identity.sign_up("a@b.c", "secret")   # 콜백에 AuthUser 전달
    await identity.sign_out()                   # 콜백에 None 전달
    ```
    """

    def __init__(self) -> None:
        super().__init__()
        self._users: dict[str, tuple[AuthUser, str]] = {}

    async def sign_up(self, email: str, password: str) -> AuthUser:
        if email in self._users:
            raise AuthError(f"Email already registered: {email}")
        user = AuthUser(uid=f"uid-{len(self._users) + 1}", email=email)
        self._users[email] = (user, password)
        await self._set_current(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        entry = self._users.get(email)
        if entry is None or entry[1] != password:
            raise AuthError("Invalid email or password")
        await self._set_current(entry[0])
        return entry[0]

    async def sign_in_with_federated_provider(self, id_token: str) -> AuthUser:
        if not id_token:
            raise AuthError("Missing id token")
        user = AuthUser(uid=id_token, email=None, provider="federated")
        await self._set_current(user)
        return user

    async def sign_out(self) -> None:
        await self._set_current(None)
