"""JSON patch operations sent to the Kubernetes API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_NO_VALUE = object()


@dataclass(frozen=True)
class PatchOperation:
    """A single RFC 6902 operation."""

    op: str
    path: str
    value: Any = field(default=_NO_VALUE)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"op": self.op, "path": self.path}
        if self.value is not _NO_VALUE:
            data["value"] = self.value
        return data


def to_json_patch(operations: list[PatchOperation]) -> list[dict[str, Any]]:
    """Render operations as a JSON patch body.

    The kubernetes client picks ``application/json-patch+json`` for list bodies.
    """
    return [operation.to_dict() for operation in operations]


def status_patch(status: dict[str, Any]) -> list[PatchOperation]:
    """Replace the whole status subresource."""
    return [PatchOperation("add", "/status", status)]


def add_finalizer_patch(finalizers: list[str] | None, token: str) -> list[PatchOperation]:
    """Append a finalizer, creating the list when the object has none."""
    if finalizers is None:
        return [PatchOperation("add", "/metadata/finalizers", [token])]
    return [PatchOperation("add", "/metadata/finalizers/-", token)]


def remove_finalizer_patch(finalizers: list[str], token: str) -> list[PatchOperation]:
    """Drop a finalizer, guarded by a test on the list the caller observed."""
    return [
        PatchOperation("test", "/metadata/finalizers", list(finalizers)),
        PatchOperation("replace", "/metadata/finalizers", [f for f in finalizers if f != token]),
    ]
