"""Utility functions for the Takaro Operator."""

from .conditions import (
    clear_error_condition,
    get_condition,
    is_condition_true,
    set_error_condition,
    set_ready_condition,
    set_synced_condition,
    update_condition,
)
from .context import get_context_dict, get_correlation_id, with_correlation_id
from .errors import sanitize_dict, sanitize_error_message, sanitize_exception
from .events import EventRecorder
from .secrets import create_secret

__all__ = [
    "update_condition",
    "get_condition",
    "is_condition_true",
    "set_ready_condition",
    "set_synced_condition",
    "set_error_condition",
    "clear_error_condition",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
    "sanitize_error_message",
    "sanitize_exception",
    "sanitize_dict",
    "EventRecorder",
    "create_secret",
]
