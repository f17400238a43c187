"""
어댑터 레이어

외부 서비스(저장소, 인증, 알림 등)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IIdentityProvider,
    ILedgerStore,
    INotifier,
)
from adapters.models import (
    AuthUser,
    Increment,
    Subscription,
    Write,
    WriteKind,
)

__all__ = [
    # Interfaces
    "ILedgerStore",
    "IIdentityProvider",
    "INotifier",
    # Models
    "AuthUser",
    "Increment",
    "Subscription",
    "Write",
    "WriteKind",
]
