"""Builders for the secrets derived from a Domain."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    CONTROLLER_NAME,
    LABEL_DOMAIN_NAME,
    LABEL_MANAGED_BY,
    LABEL_SECRET_TYPE,
    SECRET_KEY_PASSWORD,
    SECRET_KEY_TOKEN,
    SECRET_KEY_USERNAME,
    SECRET_SUFFIX_REGISTRATION_TOKEN,
    SECRET_SUFFIX_ROOT_CREDENTIALS,
)
from .domain import registration_token_secret_name, root_credentials_secret_name


def build_owner_references(body: dict[str, Any]) -> list[dict[str, Any]]:
    """Owner references that make a secret cascade with its Domain.

    Args:
        body: Domain object as returned by the API server

    Returns:
        A single controller owner reference
    """
    return [dict(kopf.build_owner_reference(body, controller=True, block_owner_deletion=True))]


def build_secret_labels(domain_name: str, secret_type: str) -> dict[str, str]:
    return {
        LABEL_MANAGED_BY: CONTROLLER_NAME,
        LABEL_DOMAIN_NAME: domain_name,
        LABEL_SECRET_TYPE: secret_type,
    }


def build_registration_token_secret(domain_name: str, token: str) -> dict[str, Any]:
    """Name, labels and data of the registration token secret."""
    return {
        "name": registration_token_secret_name(domain_name),
        "labels": build_secret_labels(domain_name, SECRET_SUFFIX_REGISTRATION_TOKEN),
        "data": {SECRET_KEY_TOKEN: token},
    }


def build_root_credentials_secret(domain_name: str, username: str, password: str) -> dict[str, Any]:
    """Name, labels and data of the root credentials secret."""
    return {
        "name": root_credentials_secret_name(domain_name),
        "labels": build_secret_labels(domain_name, SECRET_SUFFIX_ROOT_CREDENTIALS),
        "data": {SECRET_KEY_USERNAME: username, SECRET_KEY_PASSWORD: password},
    }
