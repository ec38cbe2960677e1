"""Takaro API client."""

from .base import DomainService
from .client import TakaroClient
from .errors import TakaroClientError
from .models import CreatedDomain, RootCredentials, TakaroDomain

__all__ = [
    "CreatedDomain",
    "DomainService",
    "RootCredentials",
    "TakaroClient",
    "TakaroClientError",
    "TakaroDomain",
]
