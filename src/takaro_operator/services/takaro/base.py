"""Domain service interface consumed by the reconciler."""

from __future__ import annotations

from typing import Protocol

from ...models.domain import DomainLimits, DomainSettings
from .models import CreatedDomain, TakaroDomain


class DomainService(Protocol):
    """Protocol defining Takaro domain operations."""

    async def create_domain(
        self,
        name: str,
        external_reference: str,
        limits: DomainLimits,
        settings: DomainSettings,
    ) -> CreatedDomain:
        """Create a domain and its root user."""
        ...

    async def update_domain(
        self,
        domain_id: str,
        limits: DomainLimits,
        settings: DomainSettings,
    ) -> TakaroDomain:
        """Apply limits and settings to an existing domain."""
        ...

    async def delete_domain(self, domain_id: str) -> None:
        """Delete a domain, succeeding when it is already gone."""
        ...

    async def get_domain(self, domain_id: str) -> TakaroDomain | None:
        """Get a domain, None when it does not exist."""
        ...

    async def generate_registration_token(self, domain_id: str) -> str:
        """Issue a registration token for game servers."""
        ...

    async def check_connectivity(self) -> bool:
        """Check that the API is reachable."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
