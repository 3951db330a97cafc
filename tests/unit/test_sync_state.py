"""Tests for the per-group sync state machine."""

from __future__ import annotations

import pytest

from prodex.sync.state import (
    GroupState,
    GroupStateMachine,
    InvalidTransitionError,
    SyncEvent,
)


@pytest.fixture
def machine() -> GroupStateMachine:
    return GroupStateMachine("tasks")


class TestTransitions:
    def test_starts_idle(self, machine: GroupStateMachine) -> None:
        assert machine.state == GroupState.IDLE
        assert machine.is_idle

    def test_edit_push_cycle(self, machine: GroupStateMachine) -> None:
        """IDLE -> PENDING -> PUSHING -> IDLE."""
        assert machine.fire(SyncEvent.LOCAL_EDIT) == GroupState.PENDING_LOCAL_EDIT
        assert machine.fire(SyncEvent.PUSH_START) == GroupState.PUSHING
        assert machine.fire(SyncEvent.PUSH_DONE) == GroupState.IDLE

    def test_pull_cycle(self, machine: GroupStateMachine) -> None:
        machine.fire(SyncEvent.PULL_START)
        assert machine.is_pulling

        machine.fire(SyncEvent.PULL_DONE)
        assert machine.is_idle

    def test_edit_during_pull_wins(self, machine: GroupStateMachine) -> None:
        """A local edit while pulling leaves the group pending."""
        machine.fire(SyncEvent.PULL_START)
        machine.fire(SyncEvent.LOCAL_EDIT)

        assert machine.is_pending
        assert not machine.can_fire(SyncEvent.PULL_DONE)

    def test_failed_push_returns_to_pending(self, machine: GroupStateMachine) -> None:
        machine.fire(SyncEvent.LOCAL_EDIT)
        machine.fire(SyncEvent.PUSH_START)

        assert machine.fire(SyncEvent.PUSH_FAILED) == GroupState.PENDING_LOCAL_EDIT

    def test_edit_during_push_requeues(self, machine: GroupStateMachine) -> None:
        """An edit while pushing makes the completed push land in PENDING."""
        machine.fire(SyncEvent.LOCAL_EDIT)
        machine.fire(SyncEvent.PUSH_START)
        machine.fire(SyncEvent.LOCAL_EDIT)

        assert machine.is_pushing
        assert machine.edited_during_push
        assert machine.fire(SyncEvent.PUSH_DONE) == GroupState.PENDING_LOCAL_EDIT

    def test_push_start_resets_edit_flag(self, machine: GroupStateMachine) -> None:
        machine.fire(SyncEvent.LOCAL_EDIT)
        machine.fire(SyncEvent.PUSH_START)
        machine.fire(SyncEvent.LOCAL_EDIT)
        machine.fire(SyncEvent.PUSH_DONE)

        machine.fire(SyncEvent.PUSH_START)

        assert not machine.edited_during_push
        assert machine.fire(SyncEvent.PUSH_DONE) == GroupState.IDLE

    @pytest.mark.parametrize(
        ("setup", "event"),
        [
            ([], SyncEvent.PUSH_DONE),
            ([], SyncEvent.PULL_DONE),
            ([SyncEvent.LOCAL_EDIT], SyncEvent.PULL_START),
            ([SyncEvent.LOCAL_EDIT, SyncEvent.PUSH_START], SyncEvent.PULL_START),
            ([SyncEvent.PULL_START], SyncEvent.PUSH_START),
        ],
    )
    def test_invalid_transitions(
        self,
        machine: GroupStateMachine,
        setup: list[SyncEvent],
        event: SyncEvent,
    ) -> None:
        for step in setup:
            machine.fire(step)
        state = machine.state

        assert not machine.can_fire(event)
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.fire(event)

        assert exc_info.value.event == event
        assert machine.state == state


class TestSuppression:
    def test_consumed_once(self, machine: GroupStateMachine) -> None:
        machine.suppress_next_push()

        assert machine.consume_suppression() is True
        assert machine.consume_suppression() is False

    def test_default_not_suppressed(self, machine: GroupStateMachine) -> None:
        assert machine.consume_suppression() is False


def test_repr(machine: GroupStateMachine) -> None:
    assert repr(machine) == "GroupStateMachine('tasks', state=idle)"
