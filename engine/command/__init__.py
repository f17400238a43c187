"""
Command 처리 모듈

거래 생성/수정/삭제 명령 처리
"""

from engine.command.models import CommandResult, Inconsistency, TransactionRequest
from engine.command.processor import TransactionCommandProcessor

__all__ = [
    "CommandResult",
    "Inconsistency",
    "TransactionCommandProcessor",
    "TransactionRequest",
]
