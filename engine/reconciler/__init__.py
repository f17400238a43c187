"""
Reconciler 모듈

계좌 잔고와 거래 기록 사이의 불일치 감지
"""

from engine.reconciler.drift import BalanceDrift, DriftDetector

__all__ = [
    "BalanceDrift",
    "DriftDetector",
]
