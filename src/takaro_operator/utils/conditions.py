"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_ERROR, COND_READY, COND_SYNCED, REASON_NO_ERROR

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"


def utc_now() -> str:
    """Return the current UTC time in RFC 3339 format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def update_condition(
    conditions: list[dict[str, Any]] | None,
    condition_type: str,
    status: str,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Update or add a condition, returning a new conditions list.

    The input list is not modified. ``lastTransitionTime`` only moves when
    the condition's status flips; reason/message changes alone keep the
    original timestamp.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message

    Returns:
        Updated list of conditions
    """
    result = [dict(cond) for cond in (conditions or [])]
    now = utc_now()

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    for idx, existing in enumerate(result):
        if existing.get("type") != condition_type:
            continue
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        result[idx] = new_condition
        return result

    result.append(new_condition)
    return result


def get_condition(conditions: list[dict[str, Any]] | None, condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if any."""
    for cond in conditions or []:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[dict[str, Any]] | None, condition_type: str) -> bool:
    """Check whether a condition of the given type has status True."""
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == CONDITION_TRUE


def condition_age_seconds(condition: dict[str, Any], now: datetime | None = None) -> float:
    """Seconds elapsed since the condition's last transition."""
    transitioned = datetime.fromisoformat(condition["lastTransitionTime"].replace("Z", "+00:00"))
    now = now or datetime.now(timezone.utc)
    return (now - transitioned).total_seconds()


def set_ready_condition(
    conditions: list[dict[str, Any]] | None,
    status: bool,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        CONDITION_TRUE if status else CONDITION_FALSE,
        reason,
        message,
    )


def set_synced_condition(
    conditions: list[dict[str, Any]] | None,
    status: bool,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Set the Synced condition."""
    return update_condition(
        conditions,
        COND_SYNCED,
        CONDITION_TRUE if status else CONDITION_FALSE,
        reason,
        message,
    )


def set_error_condition(
    conditions: list[dict[str, Any]] | None,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Set the Error condition to True."""
    return update_condition(conditions, COND_ERROR, CONDITION_TRUE, reason, message)


def clear_error_condition(conditions: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Set the Error condition to False."""
    return update_condition(conditions, COND_ERROR, CONDITION_FALSE, REASON_NO_ERROR, "No error")
