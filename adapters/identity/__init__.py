"""
인증 제공자

로컬(SQLite) 인증과 외부 제공자 ID 토큰 로그인.
"""

from adapters.identity.base import AuthStateEmitter
from adapters.identity.local_provider import (
    LocalIdentityProvider,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthStateEmitter",
    "LocalIdentityProvider",
    "hash_password",
    "verify_password",
]
