"""
Local Mirror 모듈

Ledger Store 스냅샷 기반 인메모리 복제본
"""

from engine.mirror.local_mirror import (
    LocalMirror,
    MirrorSnapshot,
    ProvisionalEntry,
)

__all__ = [
    "LocalMirror",
    "MirrorSnapshot",
    "ProvisionalEntry",
]
