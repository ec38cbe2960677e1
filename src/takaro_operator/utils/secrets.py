"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER


def encode_secret_data(data: dict[str, str]) -> dict[str, str]:
    """Base64 encode secret values."""
    return {k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()}


def create_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    owner_references: list[dict[str, Any]] | None = None,
    labels: dict[str, str] | None = None,
) -> bool:
    """Create a Kubernetes secret unless it already exists.

    Derived secrets are written once and never rotated, so an existing secret
    is left untouched.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Secret data (will be base64 encoded)
        owner_references: Owner references for the secret
        labels: Labels for the secret

    Returns:
        True if the secret was created, False if it already existed

    Raises:
        client.exceptions.ApiException: For any API error other than a conflict
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            owner_references=owner_references or [],
            labels=labels or {},
        ),
        type="Opaque",
        data=encode_secret_data(data),
    )

    try:
        api.create_namespaced_secret(
            namespace=namespace,
            body=secret,
            field_manager=FIELD_MANAGER,
        )
    except client.exceptions.ApiException as e:
        if e.status == 409:
            return False
        raise
    return True

