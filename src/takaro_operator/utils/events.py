"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from kubernetes import client

from ..constants import (
    CONTROLLER_NAME,
    EVENT_REASON_DELETE_FAILED,
    EVENT_REASON_DOMAIN_CREATED,
    EVENT_REASON_DOMAIN_DELETED,
    EVENT_REASON_DOMAIN_UPDATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)
from .errors import sanitize_error_message

logger = logging.getLogger(__name__)

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"


def build_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = EVENT_TYPE_NORMAL,
) -> client.CoreV1Event:
    """Build a v1 Event for the given object.

    Args:
        body: Object the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)

    Returns:
        Event ready to be posted
    """
    meta = body.get("metadata", {})
    now = datetime.now(timezone.utc)
    return client.CoreV1Event(
        metadata=client.V1ObjectMeta(
            generate_name=f"{meta.get('name', 'unknown')}.",
            namespace=meta.get("namespace") or "default",
        ),
        involved_object=client.V1ObjectReference(
            api_version=body.get("apiVersion"),
            kind=body.get("kind"),
            name=meta.get("name"),
            namespace=meta.get("namespace"),
            uid=meta.get("uid"),
            resource_version=meta.get("resourceVersion"),
        ),
        reason=reason,
        message=sanitize_error_message(message)[:1024],
        type=type_,
        count=1,
        first_timestamp=now,
        last_timestamp=now,
        source=client.V1EventSource(component=CONTROLLER_NAME),
        reporting_component=CONTROLLER_NAME,
    )


class EventRecorder:
    """Posts Kubernetes events for Domain objects.

    Events are informational: a failure to post one is logged and never
    fails the reconcile that produced it.
    """

    def __init__(self, api: client.CoreV1Api):
        self.api = api

    async def emit(
        self,
        body: dict[str, Any],
        reason: str,
        message: str,
        type_: str = EVENT_TYPE_NORMAL,
    ) -> None:
        """Emit a Kubernetes event."""
        event = build_event(body, reason, message, type_)
        try:
            await asyncio.to_thread(
                self.api.create_namespaced_event,
                namespace=event.metadata.namespace,
                body=event,
            )
        except Exception as e:
            logger.warning(f"Failed to emit event {reason}: {sanitize_error_message(str(e))}")

    async def reconcile_started(self, body: dict[str, Any]) -> None:
        await self.emit(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")

    async def reconcile_failed(self, body: dict[str, Any], message: str) -> None:
        await self.emit(body, EVENT_REASON_RECONCILE_FAILED, message, type_=EVENT_TYPE_WARNING)

    async def domain_created(self, body: dict[str, Any], domain_id: str) -> None:
        await self.emit(body, EVENT_REASON_DOMAIN_CREATED, f"Domain {domain_id} created in Takaro")

    async def domain_updated(self, body: dict[str, Any], domain_id: str) -> None:
        await self.emit(body, EVENT_REASON_DOMAIN_UPDATED, f"Domain {domain_id} updated in Takaro")

    async def domain_deleted(self, body: dict[str, Any], domain_id: str) -> None:
        await self.emit(body, EVENT_REASON_DOMAIN_DELETED, f"Domain {domain_id} deleted from Takaro")

    async def delete_failed(self, body: dict[str, Any], message: str) -> None:
        await self.emit(body, EVENT_REASON_DELETE_FAILED, message, type_=EVENT_TYPE_WARNING)
