"""Typed resource models."""

from .domain import (
    Domain,
    DomainLimits,
    DomainSettings,
    DomainSpec,
    DomainStatus,
    ObjectMeta,
    RootUserCredentials,
    TakaroConfig,
)
from .patch import PatchOperation, to_json_patch

__all__ = [
    "Domain",
    "DomainLimits",
    "DomainSettings",
    "DomainSpec",
    "DomainStatus",
    "ObjectMeta",
    "PatchOperation",
    "RootUserCredentials",
    "TakaroConfig",
    "to_json_patch",
]
