"""
core/domain/state_machines.py 테스트

거래 연산 상태 전이 규칙 테스트
"""

import pytest

from core.domain.state_machines import (
    OperationState,
    OperationStateMachine,
    StateMachineError,
)


class TestOperationStateMachine:
    """OperationStateMachine 테스트"""

    @pytest.fixture
    def machine(self) -> OperationStateMachine:
        return OperationStateMachine("op-12345678-abcd")

    def test_initial_state(self, machine: OperationStateMachine) -> None:
        assert machine.state == OperationState.IDLE.value
        assert not machine.is_terminal

    def test_commit_path(self, machine: OperationStateMachine) -> None:
        """IDLE → VALIDATING → APPLYING → COMMITTED"""
        machine.transition(OperationState.VALIDATING)
        machine.transition(OperationState.APPLYING)
        machine.transition(OperationState.COMMITTED)

        assert machine.state == "COMMITTED"
        assert machine.is_terminal
        assert machine.wrote_anything
        assert machine.history == [
            ("IDLE", "VALIDATING"),
            ("VALIDATING", "APPLYING"),
            ("APPLYING", "COMMITTED"),
        ]

    def test_validation_failure_writes_nothing(self, machine: OperationStateMachine) -> None:
        """검증 실패는 쓰기 단계 진입 없음"""
        machine.transition(OperationState.VALIDATING)
        machine.transition(OperationState.FAILED)

        assert machine.is_terminal
        assert not machine.wrote_anything

    def test_invalid_transition(self, machine: OperationStateMachine) -> None:
        """검증 없이 쓰기 불가"""
        with pytest.raises(StateMachineError, match="Cannot transition"):
            machine.transition(OperationState.APPLYING)

    def test_terminal_state_has_no_transitions(self, machine: OperationStateMachine) -> None:
        machine.transition("VALIDATING")
        machine.transition("FAILED")

        assert not machine.can_transition(OperationState.VALIDATING)
