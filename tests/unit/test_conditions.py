"""Unit tests for condition utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

from takaro_operator.utils.conditions import (
    clear_error_condition,
    condition_age_seconds,
    get_condition,
    is_condition_true,
    set_error_condition,
    set_ready_condition,
    set_synced_condition,
    update_condition,
)


class TestUpdateCondition:
    """Test update_condition."""

    def test_update_condition_new(self) -> None:
        """Test adding a new condition."""
        with patch("takaro_operator.utils.conditions.utc_now", return_value="2024-01-01T00:00:00Z"):
            result = update_condition([], "TestCondition", "True", "TestReason", "Test message")

        assert result == [
            {
                "type": "TestCondition",
                "status": "True",
                "reason": "TestReason",
                "message": "Test message",
                "lastTransitionTime": "2024-01-01T00:00:00Z",
            }
        ]

    def test_status_change_moves_transition_time(self) -> None:
        """Test that flipping status stamps a new lastTransitionTime."""
        conditions = [
            {
                "type": "TestCondition",
                "status": "False",
                "reason": "OldReason",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        with patch("takaro_operator.utils.conditions.utc_now", return_value="2024-01-01T00:00:00Z"):
            result = update_condition(conditions, "TestCondition", "True", "NewReason", "New message")

        assert len(result) == 1
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "NewReason"
        assert result[0]["lastTransitionTime"] == "2024-01-01T00:00:00Z"

    def test_same_status_keeps_transition_time(self) -> None:
        """Test that reason/message changes alone keep lastTransitionTime."""
        conditions = [
            {
                "type": "Ready",
                "status": "True",
                "reason": "DomainCreated",
                "message": "created",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        with patch("takaro_operator.utils.conditions.utc_now", return_value="2024-01-01T00:00:00Z"):
            result = update_condition(conditions, "Ready", "True", "DomainReady", "ready")

        assert result[0]["reason"] == "DomainReady"
        assert result[0]["message"] == "ready"
        assert result[0]["lastTransitionTime"] == "2023-01-01T00:00:00Z"

    def test_update_is_idempotent(self) -> None:
        """Test that applying the same update twice yields the same list."""
        once = update_condition([], "Synced", "True", "Synchronized", "in sync")
        twice = update_condition(once, "Synced", "True", "Synchronized", "in sync")

        assert twice == once

    def test_input_not_modified(self) -> None:
        """Test that the input list is left untouched."""
        conditions = [{"type": "Ready", "status": "False", "reason": "A", "message": "a"}]

        update_condition(conditions, "Ready", "True", "B", "b")

        assert conditions == [{"type": "Ready", "status": "False", "reason": "A", "message": "a"}]

    def test_other_conditions_keep_their_order(self) -> None:
        """Test that one condition per type is kept in insertion order."""
        conditions = update_condition([], "Ready", "False", "Creating", "")
        conditions = update_condition(conditions, "Synced", "True", "Synchronized", "")
        conditions = update_condition(conditions, "Ready", "True", "DomainCreated", "")

        assert [c["type"] for c in conditions] == ["Ready", "Synced"]

    def test_none_conditions(self) -> None:
        """Test that None is treated as an empty list."""
        result = update_condition(None, "Ready", "True", "R", "m")

        assert len(result) == 1


class TestConditionHelpers:
    """Test condition helpers."""

    def test_set_ready_condition(self) -> None:
        """Test setting ready condition."""
        result = set_ready_condition([], True, "DomainReady", "Domain is ready")

        assert result[0]["type"] == "Ready"
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "DomainReady"

    def test_set_ready_condition_false(self) -> None:
        """Test setting ready condition to False."""
        result = set_ready_condition([], False, "CreateFailed", "boom")

        assert result[0]["status"] == "False"

    def test_set_synced_condition(self) -> None:
        """Test setting synced condition."""
        result = set_synced_condition([], False, "UpdateFailed", "boom")

        assert result[0]["type"] == "Synced"
        assert result[0]["status"] == "False"

    def test_set_and_clear_error_condition(self) -> None:
        """Test that the error condition can be raised and cleared."""
        conditions = set_error_condition([], "CreateError", "boom")
        assert is_condition_true(conditions, "Error")

        conditions = clear_error_condition(conditions)
        error = get_condition(conditions, "Error")
        assert error["status"] == "False"
        assert error["reason"] == "NoError"

    def test_get_condition_missing(self) -> None:
        """Test that a missing condition returns None."""
        assert get_condition([], "Ready") is None
        assert not is_condition_true(None, "Ready")

    def test_condition_age_seconds(self) -> None:
        """Test computing the age of a condition."""
        condition = {"type": "Ready", "status": "True", "lastTransitionTime": "2024-01-01T00:00:00Z"}
        now = datetime(2024, 1, 1, 0, 1, 30, tzinfo=timezone.utc)

        assert condition_age_seconds(condition, now=now) == 90.0
