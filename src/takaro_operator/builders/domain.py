"""Builders for Takaro domain payloads."""

from __future__ import annotations

import re
from typing import Any

from ..constants import (
    SECRET_SUFFIX_REGISTRATION_TOKEN,
    SECRET_SUFFIX_ROOT_CREDENTIALS,
    TAKARO_STATE_ACTIVE,
    TAKARO_STATE_MAINTENANCE,
)
from ..models.domain import DomainLimits, DomainSettings

MAX_EXTERNAL_REFERENCE_LENGTH = 63

_INVALID_CHARS = re.compile(r"[^a-z0-9-]+")
_REPEATED_DASHES = re.compile(r"-{2,}")


def derive_external_reference_id(namespace: str, name: str, uid: str) -> str:
    """Derive the id that correlates a Domain with its Takaro record.

    The result only depends on its inputs, so a retried create sends the same
    reference. The uid slice keeps it unique for recreated objects.

    Args:
        namespace: Namespace of the Domain (empty for cluster-scoped objects)
        name: Name of the Domain
        uid: Cluster-assigned uid of the Domain

    Returns:
        Lowercase identifier of at most 63 characters
    """
    suffix = _sanitize(uid[:8]) or "0"
    prefix = _sanitize("-".join(part for part in (namespace, name) if part))

    room = MAX_EXTERNAL_REFERENCE_LENGTH - len(suffix) - 1
    prefix = prefix[:room].strip("-")
    return f"{prefix}-{suffix}" if prefix else suffix


def _sanitize(value: str) -> str:
    value = _INVALID_CHARS.sub("-", value.lower())
    return _REPEATED_DASHES.sub("-", value).strip("-")


def domain_state(settings: DomainSettings) -> str:
    """Takaro state matching the maintenance flag."""
    return TAKARO_STATE_MAINTENANCE if settings.maintenance_mode else TAKARO_STATE_ACTIVE


def build_limits_payload(limits: DomainLimits) -> dict[str, Any]:
    """Map Domain limits to Takaro field names, omitting unset values."""
    payload: dict[str, Any] = {}
    if limits.max_game_servers is not None:
        payload["maxGameservers"] = limits.max_game_servers
    if limits.max_users is not None:
        payload["maxUsers"] = limits.max_users
    return payload


def build_create_payload(
    name: str,
    external_reference: str,
    limits: DomainLimits,
    settings: DomainSettings,
) -> dict[str, Any]:
    """Create a ``POST /domain`` body."""
    return {
        "name": name,
        "externalReference": external_reference,
        "state": domain_state(settings),
        **build_limits_payload(limits),
    }


def build_update_payload(limits: DomainLimits, settings: DomainSettings) -> dict[str, Any]:
    """Create a ``PUT /domain/{id}`` body."""
    return {"state": domain_state(settings), **build_limits_payload(limits)}


def registration_token_secret_name(name: str) -> str:
    return f"{name}-{SECRET_SUFFIX_REGISTRATION_TOKEN}"


def root_credentials_secret_name(name: str) -> str:
    return f"{name}-{SECRET_SUFFIX_ROOT_CREDENTIALS}"
