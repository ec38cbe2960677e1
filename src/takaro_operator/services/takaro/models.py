"""Data models for Takaro API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...constants import TAKARO_STATE_MAINTENANCE


@dataclass
class TakaroDomain:
    """A domain record as returned by Takaro."""

    id: str
    name: str
    state: str | None = None
    external_reference: str | None = None
    max_game_servers: int | None = None
    max_users: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TakaroDomain:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            state=data.get("state"),
            external_reference=data.get("externalReference"),
            max_game_servers=data.get("maxGameservers"),
            max_users=data.get("maxUsers"),
        )

    @property
    def maintenance_mode(self) -> bool:
        return self.state == TAKARO_STATE_MAINTENANCE


@dataclass
class RootCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"RootCredentials(username={self.username!r}, password='***')"


@dataclass
class CreatedDomain:
    """Result of creating a domain: the record plus its root user."""

    domain: TakaroDomain
    root_credentials: RootCredentials

    @property
    def id(self) -> str:
        return self.domain.id

    @property
    def name(self) -> str:
        return self.domain.name

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CreatedDomain:
        """Parse the ``POST /domain`` payload.

        Takaro answers with ``createdDomain``, ``rootUser`` and ``password``.
        When no root user name is returned one is derived from the domain id.
        """
        domain = TakaroDomain.from_api(data.get("createdDomain") or data)
        root_user = data.get("rootUser") or {}
        username = root_user.get("name") or f"root-{domain.id[:8]}"
        return cls(
            domain=domain,
            root_credentials=RootCredentials(username=username, password=data.get("password", "")),
        )
