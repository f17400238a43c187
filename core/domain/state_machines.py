"""
State Machines

논리 연산(거래 생성/수정/삭제) 단위의 상태 전이 관리.
거래 레코드가 아니라 Command Processor가 수행하는 연산 하나에 대응.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class OperationState(str, Enum):
    """연산 상태

    전이 규칙:
    - IDLE → VALIDATING: 연산 시작
    - VALIDATING → APPLYING: 검증 통과, 쓰기 시작
    - VALIDATING → FAILED: 검증 실패 (쓰기 없음)
    - APPLYING → COMMITTED: 모든 쓰기 완료
    - APPLYING → FAILED: 저장소 쓰기 실패 (일부 반영 가능)
    """
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    APPLYING = "APPLYING"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인"""
        target = to_state.value if isinstance(to_state, Enum) else to_state
        allowed = self._transitions.get(self._state, [])
        return target in allowed

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새 상태

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            allowed = self._transitions.get(self._state, [])
            raise StateMachineError(
                f"{self._name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {allowed}"
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(f"{self._name}: {old_state} → {target}")

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class OperationStateMachine(StateMachine):
    """거래 연산 상태 머신"""

    TRANSITIONS: dict[str, list[str]] = {
        "IDLE": ["VALIDATING"],
        "VALIDATING": ["APPLYING", "FAILED"],
        "APPLYING": ["COMMITTED", "FAILED"],
    }

    def __init__(
        self,
        operation_id: str,
        initial_state: str | OperationState = OperationState.IDLE,
    ):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name=f"Operation[{operation_id[:8]}]",
        )
        self.operation_id = operation_id

    @property
    def is_terminal(self) -> bool:
        """종료 상태 여부"""
        return self._state in ("COMMITTED", "FAILED")

    @property
    def wrote_anything(self) -> bool:
        """쓰기 단계까지 진입했는지 여부"""
        return any(to == "APPLYING" for _, to in self._history)
