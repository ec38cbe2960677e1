"""Reconciler for Domain resources."""

from __future__ import annotations

import logging
from typing import Any

from .. import metrics
from ..builders.domain import derive_external_reference_id
from ..builders.secrets import (
    build_owner_references,
    build_registration_token_secret,
    build_root_credentials_secret,
)
from ..constants import (
    COND_ERROR,
    COND_READY,
    FINALIZER,
    KIND_DOMAIN,
    PHASE_CREATING,
    PHASE_DELETING,
    PHASE_ERROR,
    PHASE_MAINTENANCE,
    PHASE_READY,
    REASON_CREATE_ERROR,
    REASON_CREATE_FAILED,
    REASON_CREATING,
    REASON_DELETE_ERROR,
    REASON_DOMAIN_CREATED,
    REASON_DOMAIN_READY,
    REASON_MAINTENANCE_COMPLETE,
    REASON_MAINTENANCE_MODE,
    REASON_RECONCILE_ERROR,
    REASON_SYNCHRONIZED,
    REASON_UPDATE_ERROR,
    REASON_UPDATE_FAILED,
)
from ..logging import ResourceLogger
from ..models.domain import Domain, DomainStatus, RootUserCredentials
from ..services.kubernetes.store import ResourceStore
from ..services.takaro.base import DomainService
from ..services.takaro.errors import TakaroClientError
from ..services.takaro.models import CreatedDomain
from ..utils.conditions import (
    clear_error_condition,
    is_condition_true,
    set_error_condition,
    set_ready_condition,
    set_synced_condition,
    utc_now,
)
from ..utils.errors import sanitize_exception
from ..utils.events import EventRecorder
from .queue import ReconcileResult

logger = logging.getLogger(__name__)


class ReconcileFailure(Exception):
    """A reconcile step failed after the status describing it was computed.

    Attributes:
        status: Status to persist before retrying
    """

    def __init__(self, message: str, status: DomainStatus):
        super().__init__(message)
        self.status = status


class DomainReconciler:
    """Drives Takaro domains to match Domain resources.

    Phases move ``Pending -> Creating -> Ready``, between ``Ready`` and
    ``Maintenance`` as the maintenance flag changes, to ``Error`` on failure
    and back once a pass succeeds, and to ``Deleting`` once deletion is
    requested. The reconciler only writes status and its own finalizer.
    """

    kind = KIND_DOMAIN

    def __init__(
        self,
        store: ResourceStore,
        takaro: DomainService,
        events: EventRecorder | None = None,
        requeue_interval: float = 60.0,
        error_requeue_interval: float = 5.0,
        finalizer: str = FINALIZER,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Store for Domain resources and their secrets
            takaro: Takaro domain service
            events: Optional Kubernetes event recorder
            requeue_interval: Delay before re-checking a healthy Domain
            error_requeue_interval: Delay before retrying a failed Domain
            finalizer: Finalizer owned by this reconciler
        """
        self.store = store
        self.takaro = takaro
        self.events = events
        self.requeue_interval = requeue_interval
        self.error_requeue_interval = error_requeue_interval
        self.finalizer = finalizer
        self.log = ResourceLogger(KIND_DOMAIN, logger)

    async def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Reconcile one Domain.

        The object is always read fresh from the store. Failures are written
        to the Domain's status and answered with a short requeue.
        """
        body = await self.store.get(namespace, name)
        if body is None:
            logger.debug(f"Domain {namespace}/{name} not found, skipping reconciliation")
            return ReconcileResult()

        domain = Domain.from_dict(body)
        meta = body.get("metadata", {})

        if domain.is_deleting:
            return await self._reconcile_delete(body, domain)

        await self._emit("reconcile_started", body)
        try:
            if not await self.store.add_finalizer(namespace, name, self.finalizer):
                logger.debug(f"Domain {namespace}/{name} deleted before reconciliation, skipping")
                return ReconcileResult()
            status = await self._reconcile_domain(body, domain)
            await self.store.patch_status(namespace, name, status.to_dict())
        except ReconcileFailure as e:
            self.log.error(meta, "Reconciliation failed", error=e.__cause__ or e, event="reconcile", reason="Failed")
            await self._patch_status_best_effort(namespace, name, e.status)
            await self._emit("reconcile_failed", body, f"Reconciliation failed: {sanitize_exception(e)}")
            return self._failed(e.__cause__ or e)
        except Exception as e:
            self.log.error(meta, "Reconciliation failed", error=e, event="reconcile", reason=REASON_RECONCILE_ERROR)
            status = DomainStatus.from_dict(body.get("status"))
            status.conditions = set_error_condition(status.conditions, REASON_RECONCILE_ERROR, sanitize_exception(e))
            status.last_reconcile_time = utc_now()
            await self._patch_status_best_effort(namespace, name, status)
            await self._emit("reconcile_failed", body, f"Reconciliation failed: {sanitize_exception(e)}")
            return self._failed(e)

        self.log.info(meta, f"Domain reconciled, phase {status.phase}", event="reconcile", reason="Reconciled")
        return ReconcileResult(requeue_after=self.requeue_interval)

    def _failed(self, error: BaseException) -> ReconcileResult:
        return ReconcileResult(requeue_after=self.error_requeue_interval, error=type(error).__name__)

    async def _reconcile_domain(self, body: dict[str, Any], domain: Domain) -> DomainStatus:
        status = DomainStatus.from_dict(body.get("status"))
        if not status.external_reference_id:
            return await self._create(body, domain, status)
        return await self._sync(body, domain, status)

    async def _create(self, body: dict[str, Any], domain: Domain, status: DomainStatus) -> DomainStatus:
        meta = domain.metadata
        external_reference_id = derive_external_reference_id(meta.namespace, meta.name, meta.uid)

        status.phase = PHASE_CREATING
        status.conditions = set_ready_condition(
            status.conditions, False, REASON_CREATING, "Domain is being created in Takaro"
        )
        await self.store.patch_status(meta.namespace, meta.name, status.to_dict())

        self.log.info(
            body["metadata"],
            f"Creating domain {domain.spec.name} in Takaro",
            event="create",
            reason=REASON_CREATING,
            external_reference_id=external_reference_id,
        )
        try:
            created = await self.takaro.create_domain(
                domain.spec.name,
                external_reference_id,
                domain.spec.limits,
                domain.spec.settings,
            )
        except Exception as e:
            message = sanitize_exception(e)
            status.phase = PHASE_ERROR
            status.conditions = set_ready_condition(
                status.conditions, False, REASON_CREATE_FAILED, f"Failed to create domain: {message}"
            )
            status.conditions = set_error_condition(status.conditions, REASON_CREATE_ERROR, message)
            status.last_reconcile_time = utc_now()
            raise ReconcileFailure(f"Failed to create domain {domain.spec.name}", status) from e

        # From here on the remote domain exists, so its ids are always persisted
        status.external_reference_id = external_reference_id
        status.domain_id = created.id
        try:
            await self._create_root_credentials_secret(body, domain, created, status)
            await self._ensure_registration_token(body, domain, status)
        except Exception as e:
            message = sanitize_exception(e)
            status.phase = PHASE_ERROR
            status.conditions = set_ready_condition(
                status.conditions, False, REASON_CREATE_FAILED, f"Domain created but setup failed: {message}"
            )
            status.conditions = set_error_condition(status.conditions, REASON_CREATE_ERROR, message)
            status.last_reconcile_time = utc_now()
            raise ReconcileFailure(f"Failed to finish setup of domain {created.id}", status) from e

        if domain.spec.settings.maintenance_mode:
            status.phase = PHASE_MAINTENANCE
            status.conditions = set_ready_condition(
                status.conditions, False, REASON_MAINTENANCE_MODE, "Domain is in maintenance mode"
            )
        else:
            status.phase = PHASE_READY
            status.conditions = set_ready_condition(
                status.conditions, True, REASON_DOMAIN_CREATED, "Domain created in Takaro"
            )
        status.conditions = set_synced_condition(
            status.conditions, True, REASON_SYNCHRONIZED, "Domain configuration is synchronized"
        )
        status.conditions = clear_error_condition(status.conditions)
        status.observed_generation = meta.generation
        status.last_reconcile_time = utc_now()

        self.log.info(body["metadata"], f"Domain {created.id} created", event="create", reason=REASON_DOMAIN_CREATED)
        await self._emit("domain_created", body, created.id)
        return status

    async def _create_root_credentials_secret(
        self,
        body: dict[str, Any],
        domain: Domain,
        created: CreatedDomain,
        status: DomainStatus,
    ) -> None:
        credentials = created.root_credentials
        secret = build_root_credentials_secret(domain.metadata.name, credentials.username, credentials.password)
        await self.store.create_secret(
            domain.metadata.namespace,
            secret["name"],
            secret["data"],
            owner_references=build_owner_references(body),
            labels=secret["labels"],
        )
        status.root_user_credentials = RootUserCredentials(username=credentials.username, secret_name=secret["name"])

    async def _ensure_registration_token(self, body: dict[str, Any], domain: Domain, status: DomainStatus) -> None:
        """Issue the registration token secret unless it was already recorded."""
        if status.registration_token_secret_name:
            return
        token = await self.takaro.generate_registration_token(status.remote_id)
        secret = build_registration_token_secret(domain.metadata.name, token)
        await self.store.create_secret(
            domain.metadata.namespace,
            secret["name"],
            secret["data"],
            owner_references=build_owner_references(body),
            labels=secret["labels"],
        )
        status.registration_token_secret_name = secret["name"]

    async def _sync(self, body: dict[str, Any], domain: Domain, status: DomainStatus) -> DomainStatus:
        meta = domain.metadata
        previous_phase = status.phase

        try:
            await self._ensure_registration_token(body, domain, status)
        except Exception as e:
            status.phase = PHASE_ERROR
            status.conditions = set_error_condition(status.conditions, REASON_CREATE_ERROR, sanitize_exception(e))
            status.last_reconcile_time = utc_now()
            raise ReconcileFailure(f"Failed to issue registration token for {status.remote_id}", status) from e

        if status.observed_generation is None or meta.generation != status.observed_generation:
            metrics.drift_detected_total.labels(kind=KIND_DOMAIN).inc()
            self.log.info(
                body["metadata"],
                "Spec changed, updating domain in Takaro",
                event="update",
                reason="DriftDetected",
                generation=meta.generation,
                observed_generation=status.observed_generation,
            )
            try:
                await self.takaro.update_domain(status.remote_id, domain.spec.limits, domain.spec.settings)
            except Exception as e:
                message = sanitize_exception(e)
                status.phase = PHASE_ERROR
                status.conditions = set_synced_condition(
                    status.conditions, False, REASON_UPDATE_FAILED, f"Failed to update domain: {message}"
                )
                status.conditions = set_error_condition(status.conditions, REASON_UPDATE_ERROR, message)
                status.last_reconcile_time = utc_now()
                raise ReconcileFailure(f"Failed to update domain {status.remote_id}", status) from e

            status.conditions = set_synced_condition(
                status.conditions, True, REASON_SYNCHRONIZED, "Domain configuration is synchronized"
            )
            status.conditions = clear_error_condition(status.conditions)
            await self._emit("domain_updated", body, status.remote_id)

        if domain.spec.settings.maintenance_mode:
            status.phase = PHASE_MAINTENANCE
            status.conditions = set_ready_condition(
                status.conditions, False, REASON_MAINTENANCE_MODE, "Domain is in maintenance mode"
            )
        elif previous_phase == PHASE_MAINTENANCE:
            status.phase = PHASE_READY
            status.conditions = set_ready_condition(
                status.conditions, True, REASON_MAINTENANCE_COMPLETE, "Domain maintenance completed"
            )
        elif previous_phase != PHASE_READY or not is_condition_true(status.conditions, COND_READY):
            status.phase = PHASE_READY
            status.conditions = set_ready_condition(status.conditions, True, REASON_DOMAIN_READY, "Domain is ready")

        if is_condition_true(status.conditions, COND_ERROR):
            status.conditions = clear_error_condition(status.conditions)
        status.observed_generation = meta.generation
        status.last_reconcile_time = utc_now()
        return status

    async def _reconcile_delete(self, body: dict[str, Any], domain: Domain) -> ReconcileResult:
        meta = domain.metadata
        if not domain.has_finalizer(self.finalizer):
            return ReconcileResult()

        status = DomainStatus.from_dict(body.get("status"))
        if status.external_reference_id:
            remote_id = status.remote_id
            status.phase = PHASE_DELETING
            await self.store.patch_status(meta.namespace, meta.name, status.to_dict())

            self.log.info(
                body["metadata"], f"Deleting domain {remote_id} from Takaro", event="delete", reason="Deleting"
            )
            try:
                await self.takaro.delete_domain(remote_id)
            except TakaroClientError as e:
                if not e.not_found:
                    return await self._delete_failed(body, status, e)
            except Exception as e:
                return await self._delete_failed(body, status, e)
            await self._emit("domain_deleted", body, remote_id)

        await self.store.remove_finalizer(meta.namespace, meta.name, self.finalizer)
        self.log.info(body["metadata"], "Finalizer removed", event="delete", reason="Deleted")
        return ReconcileResult()

    async def _delete_failed(self, body: dict[str, Any], status: DomainStatus, error: Exception) -> ReconcileResult:
        message = sanitize_exception(error)
        self.log.error(
            body["metadata"], "Failed to delete domain", error=error, event="delete", reason=REASON_DELETE_ERROR
        )
        status.conditions = set_error_condition(
            status.conditions, REASON_DELETE_ERROR, f"Failed to delete domain: {message}"
        )
        status.last_reconcile_time = utc_now()
        meta = body["metadata"]
        await self._patch_status_best_effort(meta.get("namespace", ""), meta["name"], status)
        await self._emit("delete_failed", body, f"Failed to delete domain: {message}")
        return self._failed(error)

    async def _patch_status_best_effort(self, namespace: str, name: str, status: DomainStatus) -> None:
        try:
            await self.store.patch_status(namespace, name, status.to_dict())
        except Exception as e:
            logger.warning(f"Failed to write error status for Domain {namespace}/{name}: {sanitize_exception(e)}")

    async def _emit(self, method: str, body: dict[str, Any], *args: Any) -> None:
        if self.events is not None:
            await getattr(self.events, method)(body, *args)

