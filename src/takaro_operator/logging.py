"""Structured logging configuration for the Takaro Operator."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from .constants import CONTROLLER_NAME
from .utils.context import get_context_dict
from .utils.errors import sanitize_dict, sanitize_exception


def setup_structured_logging(level: str | int = logging.INFO) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # The kubernetes client logs every request at DEBUG
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = get_context_dict(
        {
            "level": logging.getLevelName(level),
            "controller": controller,
            "resource": resource_kind,
            "name": resource_name,
            "namespace": namespace,
            "uid": uid,
            "event": event,
            "reason": reason,
            "message": message,
        }
    )
    log_data.update(sanitize_dict(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


class ResourceLogger:
    """Structured logger bound to one resource kind."""

    def __init__(self, kind: str, logger: logging.Logger | None = None):
        self.kind = kind
        self.logger = logger or logging.getLogger(__name__)

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=meta.get("name", "unknown"),
            namespace=meta.get("namespace", ""),
            uid=meta.get("uid", "unknown"),
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured message."""
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def error(
        self,
        meta: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception, included in sanitized form
            event: Event type
            reason: Reason for the event
            **kwargs: Additional fields to include in the log
        """
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **kwargs)
