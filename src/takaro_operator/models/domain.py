"""Typed representation of the Domain custom resource."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import API_GROUP_VERSION, KIND_DOMAIN


@dataclass
class ObjectMeta:
    """The subset of Kubernetes object metadata the operator reads."""

    name: str
    namespace: str = ""
    uid: str = ""
    generation: int | None = None
    resource_version: str | None = None
    deletion_timestamp: str | None = None
    finalizers: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectMeta:
        return cls(
            name=data["name"],
            namespace=data.get("namespace") or "",
            uid=data.get("uid") or "",
            generation=data.get("generation"),
            resource_version=data.get("resourceVersion"),
            deletion_timestamp=data.get("deletionTimestamp"),
            finalizers=list(data.get("finalizers") or []),
            labels=dict(data.get("labels") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "uid": self.uid}
        if self.namespace:
            data["namespace"] = self.namespace
        if self.generation is not None:
            data["generation"] = self.generation
        if self.resource_version:
            data["resourceVersion"] = self.resource_version
        if self.deletion_timestamp:
            data["deletionTimestamp"] = self.deletion_timestamp
        if self.finalizers:
            data["finalizers"] = list(self.finalizers)
        if self.labels:
            data["labels"] = dict(self.labels)
        return data

    @property
    def key(self) -> str:
        """Reconcile key of the object."""
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


@dataclass
class DomainLimits:
    max_game_servers: int | None = None
    max_users: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DomainLimits:
        data = data or {}
        return cls(max_game_servers=data.get("maxGameServers"), max_users=data.get("maxUsers"))

    def to_dict(self) -> dict[str, Any]:
        data = {}
        if self.max_game_servers is not None:
            data["maxGameServers"] = self.max_game_servers
        if self.max_users is not None:
            data["maxUsers"] = self.max_users
        return data


@dataclass
class DomainSettings:
    maintenance_mode: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DomainSettings:
        data = data or {}
        return cls(maintenance_mode=bool(data.get("maintenanceMode", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"maintenanceMode": self.maintenance_mode}


@dataclass
class TakaroConfig:
    api_url: str | None = None
    features: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TakaroConfig:
        data = data or {}
        return cls(api_url=data.get("apiUrl"), features=list(data.get("features") or []))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.api_url:
            data["apiUrl"] = self.api_url
        if self.features:
            data["features"] = list(self.features)
        return data


@dataclass
class DomainSpec:
    """Desired state, owned by whoever declares the Domain."""

    name: str
    external_reference: str = ""
    game_server_id: str | None = None
    limits: DomainLimits = field(default_factory=DomainLimits)
    settings: DomainSettings = field(default_factory=DomainSettings)
    takaro_config: TakaroConfig = field(default_factory=TakaroConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DomainSpec:
        return cls(
            name=data.get("name", ""),
            external_reference=data.get("externalReference", ""),
            game_server_id=data.get("gameServerId"),
            limits=DomainLimits.from_dict(data.get("limits")),
            settings=DomainSettings.from_dict(data.get("settings")),
            takaro_config=TakaroConfig.from_dict(data.get("takaroConfig")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "externalReference": self.external_reference,
            "limits": self.limits.to_dict(),
            "settings": self.settings.to_dict(),
        }
        if self.game_server_id:
            data["gameServerId"] = self.game_server_id
        takaro_config = self.takaro_config.to_dict()
        if takaro_config:
            data["takaroConfig"] = takaro_config
        return data


@dataclass
class RootUserCredentials:
    username: str
    secret_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"username": self.username, "secretName": self.secret_name}


@dataclass
class DomainStatus:
    """Observed state, owned by the operator."""

    phase: str | None = None
    external_reference_id: str | None = None
    domain_id: str | None = None
    root_user_credentials: RootUserCredentials | None = None
    registration_token_secret_name: str | None = None
    conditions: list[dict[str, Any]] = field(default_factory=list)
    observed_generation: int | None = None
    last_reconcile_time: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DomainStatus:
        data = data or {}
        creds = data.get("rootUserCredentials")
        return cls(
            phase=data.get("phase"),
            external_reference_id=data.get("externalReferenceId") or None,
            domain_id=data.get("domainId") or None,
            root_user_credentials=(
                RootUserCredentials(username=creds["username"], secret_name=creds["secretName"])
                if creds
                else None
            ),
            registration_token_secret_name=data.get("registrationTokenSecretName"),
            conditions=[dict(c) for c in data.get("conditions") or []],
            observed_generation=data.get("observedGeneration"),
            last_reconcile_time=data.get("lastReconcileTime"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"conditions": [dict(c) for c in self.conditions]}
        if self.phase:
            data["phase"] = self.phase
        if self.external_reference_id:
            data["externalReferenceId"] = self.external_reference_id
        if self.domain_id:
            data["domainId"] = self.domain_id
        if self.root_user_credentials:
            data["rootUserCredentials"] = self.root_user_credentials.to_dict()
        if self.registration_token_secret_name:
            data["registrationTokenSecretName"] = self.registration_token_secret_name
        if self.observed_generation is not None:
            data["observedGeneration"] = self.observed_generation
        if self.last_reconcile_time:
            data["lastReconcileTime"] = self.last_reconcile_time
        return data

    @property
    def remote_id(self) -> str | None:
        """Identifier used to address the domain in Takaro."""
        return self.domain_id or self.external_reference_id


@dataclass
class Domain:
    """A Domain custom resource."""

    metadata: ObjectMeta
    spec: DomainSpec
    status: DomainStatus = field(default_factory=DomainStatus)
    api_version: str = API_GROUP_VERSION
    kind: str = KIND_DOMAIN

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Domain:
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata") or {}),
            spec=DomainSpec.from_dict(data.get("spec") or {}),
            status=DomainStatus.from_dict(data.get("status")),
            api_version=data.get("apiVersion", API_GROUP_VERSION),
            kind=data.get("kind", KIND_DOMAIN),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }

    @property
    def is_deleting(self) -> bool:
        return bool(self.metadata.deletion_timestamp)

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.metadata.finalizers
