"""Kubernetes operator that manages Takaro domains."""

__version__ = "0.1.0"
