"""Per-group sync state machine.

Each sync group (the task fast path, and the career group of goals,
applications, skills and settings) walks an explicit transition table. The
machine also owns the group's "suppress next push" flag, which keeps a
change applied from the server from being pushed straight back.
"""

from __future__ import annotations

import logging
from enum import StrEnum

logger = logging.getLogger(__name__)


class GroupState(StrEnum):
    """Sync state of one group."""

    IDLE = "idle"
    PULLING = "pulling"
    PUSHING = "pushing"
    PENDING_LOCAL_EDIT = "pending_local_edit"


class SyncEvent(StrEnum):
    """Events driving a group state machine."""

    LOCAL_EDIT = "local_edit"
    PULL_START = "pull_start"
    PULL_DONE = "pull_done"
    PUSH_START = "push_start"
    PUSH_DONE = "push_done"
    PUSH_FAILED = "push_failed"


class InvalidTransitionError(Exception):
    """An event was fired in a state that does not accept it."""

    def __init__(self, group: str, state: GroupState, event: SyncEvent) -> None:
        super().__init__(f"{group}: event {event.value} not allowed in state {state.value}")
        self.group = group
        self.state = state
        self.event = event


# PUSHING + LOCAL_EDIT and PUSHING + PUSH_DONE are resolved in fire().
TRANSITIONS: dict[GroupState, dict[SyncEvent, GroupState]] = {
    GroupState.IDLE: {
        SyncEvent.LOCAL_EDIT: GroupState.PENDING_LOCAL_EDIT,
        SyncEvent.PULL_START: GroupState.PULLING,
        SyncEvent.PUSH_START: GroupState.PUSHING,
    },
    GroupState.PULLING: {
        SyncEvent.LOCAL_EDIT: GroupState.PENDING_LOCAL_EDIT,
        SyncEvent.PULL_DONE: GroupState.IDLE,
    },
    GroupState.PENDING_LOCAL_EDIT: {
        SyncEvent.LOCAL_EDIT: GroupState.PENDING_LOCAL_EDIT,
        SyncEvent.PUSH_START: GroupState.PUSHING,
    },
    GroupState.PUSHING: {
        SyncEvent.LOCAL_EDIT: GroupState.PUSHING,
        SyncEvent.PUSH_DONE: GroupState.IDLE,
        SyncEvent.PUSH_FAILED: GroupState.PENDING_LOCAL_EDIT,
    },
}


class GroupStateMachine:
    """State of one sync group."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._state = GroupState.IDLE
        self._edited_during_push = False
        self._suppress_next_push = False

    @property
    def state(self) -> GroupState:
        return self._state

    @property
    def edited_during_push(self) -> bool:
        return self._edited_during_push

    @property
    def is_idle(self) -> bool:
        return self._state == GroupState.IDLE

    @property
    def is_pending(self) -> bool:
        return self._state == GroupState.PENDING_LOCAL_EDIT

    @property
    def is_pushing(self) -> bool:
        return self._state == GroupState.PUSHING

    @property
    def is_pulling(self) -> bool:
        return self._state == GroupState.PULLING

    def can_fire(self, event: SyncEvent) -> bool:
        return event in TRANSITIONS[self._state]

    def fire(self, event: SyncEvent) -> GroupState:
        """Apply an event and return the new state.

        Raises:
            InvalidTransitionError: If the current state does not accept ``event``
        """
        target = TRANSITIONS[self._state].get(event)
        if target is None:
            raise InvalidTransitionError(self.name, self._state, event)

        if self._state == GroupState.PUSHING:
            if event == SyncEvent.LOCAL_EDIT:
                self._edited_during_push = True
            elif event == SyncEvent.PUSH_DONE and self._edited_during_push:
                target = GroupState.PENDING_LOCAL_EDIT
        if event == SyncEvent.PUSH_START:
            self._edited_during_push = False

        logger.debug("%s: %s --%s--> %s", self.name, self._state, event, target)
        self._state = target
        return target

    # ------------------------------------------------------------------
    # Suppression
    # ------------------------------------------------------------------

    def suppress_next_push(self) -> None:
        """Mark the next change notification as server-originated."""
        self._suppress_next_push = True

    def consume_suppression(self) -> bool:
        """Return True (and clear the flag) if the next push must be skipped."""
        suppressed = self._suppress_next_push
        self._suppress_next_push = False
        return suppressed

    def __repr__(self) -> str:
        return f"GroupStateMachine({self.name!r}, state={self._state.value})"
