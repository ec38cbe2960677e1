"""Explicit wiring of the clients and controllers the operator runs."""

from __future__ import annotations

import logging

from kubernetes import client, config

from .config import Settings
from .constants import API_GROUP, API_VERSION, PLURAL_DOMAINS
from .controllers.controller import Controller
from .controllers.domain import DomainReconciler
from .controllers.registry import ControllerRegistry
from .health import HealthServer
from .services.kubernetes.store import ResourceStore
from .services.kubernetes.watch import WatchAdapter
from .services.takaro.client import TakaroClient
from .utils.events import EventRecorder

logger = logging.getLogger(__name__)

DOMAIN_CONTROLLER = "domain"


def load_kube_config(kubeconfig: str | None = None) -> None:
    """Load in-cluster configuration, falling back to a kubeconfig file."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config(config_file=kubeconfig)


class OperatorContext:
    """Owns every long-lived object of one operator process.

    ``init`` builds clients and registers the enabled controllers,
    ``shutdown`` releases them.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.registry = ControllerRegistry()
        self.custom_api: client.CustomObjectsApi | None = None
        self.core_api: client.CoreV1Api | None = None
        self.takaro: TakaroClient | None = None
        self.domain_store: ResourceStore | None = None
        self.health: HealthServer | None = None

    def init(self) -> None:
        """Load cluster credentials, build clients and register controllers."""
        settings = self.settings
        load_kube_config(settings.kubeconfig)
        self.custom_api = client.CustomObjectsApi()
        self.core_api = client.CoreV1Api()
        self.takaro = TakaroClient(settings.takaro)

        self.domain_store = ResourceStore(
            self.custom_api,
            self.core_api,
            API_GROUP,
            API_VERSION,
            PLURAL_DOMAINS,
            namespace=settings.watch_namespace,
        )
        if settings.domain_controller_enabled:
            self.registry.register(DOMAIN_CONTROLLER, self.build_domain_controller())

        self.health = HealthServer(
            settings.metrics_port,
            self.registry,
            connectivity_check=self.domain_store.check_connectivity,
        )
        scope = settings.watch_namespace or "all namespaces"
        logger.info(f"Operator initialized, watching {scope}")

    def build_domain_controller(self) -> Controller:
        settings = self.settings
        reconciler = DomainReconciler(
            self.domain_store,
            self.takaro,
            events=EventRecorder(self.core_api),
            requeue_interval=settings.requeue_interval,
            error_requeue_interval=settings.error_requeue_interval,
        )
        watch = WatchAdapter(
            self.domain_store,
            controller_name=DOMAIN_CONTROLLER,
            timeout_seconds=settings.watch_timeout_seconds,
            max_failures=settings.watch_max_failures,
        )
        return Controller(
            DOMAIN_CONTROLLER,
            self.domain_store,
            reconciler,
            watch=watch,
            reconcile_interval=settings.reconcile_interval,
            resync_interval=settings.resync_interval,
            max_concurrent=settings.max_concurrent_reconciles,
            error_requeue_interval=settings.error_requeue_interval,
        )

    async def shutdown(self) -> None:
        """Stop controllers and release clients."""
        await self.registry.stop_all()
        if self.health is not None:
            self.health.stop()
        if self.takaro is not None:
            await self.takaro.aclose()
        logger.info("Operator shut down")
