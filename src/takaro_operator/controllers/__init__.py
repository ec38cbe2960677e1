"""Controllers and the reconcile machinery they share."""

from .controller import Controller, Reconciler
from .domain import DomainReconciler, ReconcileFailure
from .queue import ReconcileQueue, ReconcileRequest, ReconcileResult
from .registry import ControllerRegistry, RegistryError

__all__ = [
    "Controller",
    "ControllerRegistry",
    "DomainReconciler",
    "ReconcileFailure",
    "ReconcileQueue",
    "ReconcileRequest",
    "ReconcileResult",
    "Reconciler",
    "RegistryError",
]
