"""Access to custom resources and their derived objects in Kubernetes."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from kubernetes import client

from ... import metrics
from ...models.patch import (
    add_finalizer_patch,
    remove_finalizer_patch,
    status_patch,
    to_json_patch,
)
from ...utils.secrets import create_secret

logger = logging.getLogger(__name__)

API_TYPE = "k8s"


class ResourceStore:
    """Point operations on one custom resource type.

    The kubernetes client is synchronous, so every call runs in a worker
    thread. Patches are sent as JSON patch lists.
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        core_api: client.CoreV1Api,
        group: str,
        version: str,
        plural: str,
        namespace: str | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            custom_api: CustomObjectsApi instance
            core_api: CoreV1Api instance, used for secrets
            group: API group of the resource
            version: API version of the resource
            plural: Plural resource name
            namespace: Namespace to operate in, None for all namespaces
        """
        self.custom_api = custom_api
        self.core_api = core_api
        self.group = group
        self.version = version
        self.plural = plural
        self.namespace = namespace

    async def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = await asyncio.to_thread(fn, **kwargs)
            metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="success").inc()
            return result
        except Exception:
            metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type=API_TYPE, operation=operation).observe(duration)

    def _resource_args(self) -> dict[str, str]:
        return {"group": self.group, "version": self.version, "plural": self.plural}

    def list_call(self) -> tuple[Callable[..., Any], dict[str, Any]]:
        """Return the list function and arguments, also used to open watches."""
        if self.namespace:
            return self.custom_api.list_namespaced_custom_object, {
                **self._resource_args(),
                "namespace": self.namespace,
            }
        return self.custom_api.list_cluster_custom_object, self._resource_args()

    async def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Fetch the latest state of an object, None if it does not exist."""
        try:
            return await self._call(
                "get",
                self.custom_api.get_namespaced_custom_object,
                **self._resource_args(),
                namespace=namespace,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise

    async def list(self) -> tuple[list[dict[str, Any]], str]:
        """List all objects.

        Returns:
            The objects and the list resourceVersion to start a watch from
        """
        fn, kwargs = self.list_call()
        result = await self._call("list", fn, **kwargs)
        items = result.get("items", [])
        resource_version = result.get("metadata", {}).get("resourceVersion", "")
        return items, resource_version

    async def patch_status(self, namespace: str, name: str, status: dict[str, Any]) -> None:
        """Replace the status subresource of an object.

        An object that disappeared in the meantime is skipped.
        """
        try:
            await self._call(
                "patch_status",
                self.custom_api.patch_namespaced_custom_object_status,
                **self._resource_args(),
                namespace=namespace,
                name=name,
                body=to_json_patch(status_patch(status)),
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                logger.debug(f"{self.plural} {namespace}/{name} gone before status update")
                return
            raise

    async def add_finalizer(self, namespace: str, name: str, token: str) -> bool:
        """Add a finalizer unless the object already carries it.

        Returns:
            False if the object no longer exists
        """
        obj = await self.get(namespace, name)
        if obj is None:
            return False
        finalizers = obj.get("metadata", {}).get("finalizers")
        if finalizers and token in finalizers:
            return True
        try:
            await self._call(
                "add_finalizer",
                self.custom_api.patch_namespaced_custom_object,
                **self._resource_args(),
                namespace=namespace,
                name=name,
                body=to_json_patch(add_finalizer_patch(finalizers, token)),
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    async def remove_finalizer(self, namespace: str, name: str, token: str) -> None:
        """Remove a finalizer.

        The patch tests the finalizer list it was computed from, so a
        concurrent change makes it fail instead of dropping another
        controller's finalizer.
        """
        obj = await self.get(namespace, name)
        if obj is None:
            return
        finalizers = obj.get("metadata", {}).get("finalizers") or []
        if token not in finalizers:
            return
        await self._call(
            "remove_finalizer",
            self.custom_api.patch_namespaced_custom_object,
            **self._resource_args(),
            namespace=namespace,
            name=name,
            body=to_json_patch(remove_finalizer_patch(finalizers, token)),
        )

    async def create_secret(
        self,
        namespace: str,
        name: str,
        data: dict[str, str],
        owner_references: list[dict[str, Any]] | None = None,
        labels: dict[str, str] | None = None,
    ) -> bool:
        """Create a secret, returning False when it already existed."""
        return await self._call(
            "create_secret",
            create_secret,
            api=self.core_api,
            namespace=namespace,
            secret_name=name,
            data=data,
            owner_references=owner_references,
            labels=labels,
        )

    def check_connectivity(self) -> bool:
        """Check that the resource type can be listed."""
        fn, kwargs = self.list_call()
        try:
            fn(**kwargs, limit=1, _request_timeout=5)
        except Exception as e:
            logger.warning(f"Kubernetes connectivity check failed: {e}")
            return False
        return True
