"""Tests for status token translation between client and storage spellings."""

from __future__ import annotations

import pytest

from prodex.core.entities import ApplicationStatus, TaskStatus
from prodex.storage.sqlite_row_mappers import (
    app_status_from_db,
    app_status_to_db,
    milestone_status_to_db,
    task_status_from_db,
    task_status_to_db,
)


class TestTaskStatus:
    @pytest.mark.parametrize(
        ("client", "stored"),
        [
            (TaskStatus.TODO, "todo"),
            (TaskStatus.IN_PROGRESS, "in_progress"),
            (TaskStatus.DONE, "done"),
            (TaskStatus.ARCHIVED, "archived"),
        ],
    )
    def test_translation(self, client: TaskStatus, stored: str) -> None:
        assert task_status_to_db(client) == stored
        assert task_status_from_db(stored) == client

    def test_plain_string_accepted(self) -> None:
        assert task_status_to_db("in-progress") == "in_progress"

    def test_unknown_rejected(self) -> None:
        with pytest.raises(ValueError):
            task_status_to_db("blocked")


class TestApplicationStatus:
    def test_phone_screen(self) -> None:
        assert app_status_to_db(ApplicationStatus.PHONE_SCREEN) == "phone_screen"
        assert app_status_from_db("phone_screen") == ApplicationStatus.PHONE_SCREEN

    def test_other_tokens_unchanged(self) -> None:
        assert app_status_to_db(ApplicationStatus.OFFER) == "offer"
        assert app_status_from_db("withdrawn") == ApplicationStatus.WITHDRAWN


def test_milestone_status() -> None:
    assert milestone_status_to_db(True) == "completed"
    assert milestone_status_to_db(False) == "pending"
