"""Generic watch-driven controller runtime."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Protocol

from .. import metrics
from ..services.kubernetes.store import ResourceStore
from ..services.kubernetes.watch import WatchAdapter, WatchEvent
from ..tracing import trace_span
from ..utils.context import with_correlation_id
from ..utils.errors import sanitize_exception
from .queue import ReconcileQueue, ReconcileRequest, ReconcileResult

logger = logging.getLogger(__name__)

EVENT_QUEUE_SIZE = 100
WATCH_RESTART_DELAY = 30.0


class Reconciler(Protocol):
    """Per-kind reconciliation logic plugged into a Controller."""

    kind: str

    async def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Drive one object towards its declared state."""
        ...


class Controller:
    """Wires a store, a watch, a reconcile queue and a reconciler together.

    Watch events only carry identity into the queue. The reconciler always
    fetches the latest object itself.
    """

    def __init__(
        self,
        name: str,
        store: ResourceStore,
        reconciler: Reconciler,
        watch: WatchAdapter | None = None,
        reconcile_interval: float = 30.0,
        resync_interval: float = 300.0,
        max_concurrent: int = 1,
        error_requeue_interval: float = 5.0,
        event_queue_size: int = EVENT_QUEUE_SIZE,
        watch_restart_delay: float = WATCH_RESTART_DELAY,
    ) -> None:
        """Initialize the controller.

        Args:
            name: Controller name used in logs and metrics
            store: Store for the watched resource type
            reconciler: Reconciler for the resource kind
            watch: Watch adapter, one is built from the store when omitted
            reconcile_interval: Longest time between two queue drains
            resync_interval: Seconds between full relists, 0 disables them
            max_concurrent: Reconciles of distinct objects allowed at once
            error_requeue_interval: Delay before retrying a failed reconcile
            event_queue_size: Bound of the watch event queue
            watch_restart_delay: Pause before a watch that gave up is started again
        """
        self.name = name
        self.store = store
        self.reconciler = reconciler
        self.watch = watch or WatchAdapter(store, controller_name=name)
        self.reconcile_interval = reconcile_interval
        self.resync_interval = resync_interval
        self.event_queue_size = event_queue_size
        self.watch_restart_delay = watch_restart_delay
        self.queue = ReconcileQueue(
            name,
            max_concurrent=max_concurrent,
            error_requeue_delay=error_requeue_interval,
        )
        self._events: asyncio.Queue[WatchEvent] | None = None
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._watch_healthy = False

    def is_running(self) -> bool:
        return self._running and self._watch_healthy

    def status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "running": self.is_running(),
            "watching": self._watch_healthy,
            "pending": len(self.queue),
            "in_flight": len(self.queue.in_flight),
        }

    async def start(self) -> None:
        """List existing objects, then start watching and reconciling.

        Raises:
            Exception: If the initial list fails
        """
        if self._running:
            logger.info(f"Controller {self.name} is already running")
            return

        logger.info(f"Starting controller {self.name}")
        items, resource_version = await self.store.list()
        for item in items:
            self.enqueue_object(item)

        self._events = asyncio.Queue(maxsize=self.event_queue_size)
        self._running = True
        self._watch_healthy = True
        self._tasks = [
            asyncio.create_task(self._watch_loop(resource_version), name=f"{self.name}-watch"),
            asyncio.create_task(self._consume_events(), name=f"{self.name}-events"),
            asyncio.create_task(self._drain_loop(), name=f"{self.name}-drain"),
        ]
        if self.resync_interval > 0:
            self._tasks.append(asyncio.create_task(self._resync_loop(), name=f"{self.name}-resync"))
        logger.info(f"Controller {self.name} started with {len(items)} existing objects")

    async def stop(self) -> None:
        """Stop watching and cancel in-flight work."""
        logger.info(f"Stopping controller {self.name}")
        self._running = False
        self._watch_healthy = False
        self.watch.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._events = None
        self.queue.clear()

    async def _watch_loop(self, resource_version: str | None) -> None:
        """Keep the watch alive for as long as the controller runs.

        A watch that gave up is started again from a fresh list after
        ``watch_restart_delay``. Reconciling continues meanwhile.
        """
        assert self._events is not None
        while self._running:
            try:
                await self.watch.run(self._events, resource_version)
                return
            except Exception as e:
                self._watch_healthy = False
                metrics.watch_restarts_total.labels(controller=self.name, reason="gave_up").inc()
                logger.error(
                    f"Controller {self.name} lost its watch, restarting in {self.watch_restart_delay}s: "
                    f"{sanitize_exception(e)}"
                )
            await asyncio.sleep(self.watch_restart_delay)
            resource_version = None
            self._watch_healthy = True

    def enqueue_object(self, obj: dict[str, Any]) -> None:
        meta = obj.get("metadata", {})
        self.queue.enqueue(
            ReconcileRequest(
                namespace=meta.get("namespace") or "",
                name=meta["name"],
                resource_version=meta.get("resourceVersion"),
            )
        )

    async def _consume_events(self) -> None:
        assert self._events is not None
        while True:
            event = await self._events.get()
            logger.debug(f"{event.kind.value} {self.name} {event.key}")
            self.enqueue_object(event.resource)

    async def _drain_loop(self) -> None:
        while self._running:
            await self.queue.wait_for_work(self.reconcile_interval)
            await self.queue.drain(self._handle)

    async def _resync_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.resync_interval)
            try:
                items, _ = await self.store.list()
            except Exception as e:
                logger.warning(f"Resync of {self.name} failed: {sanitize_exception(e)}")
                continue
            for item in items:
                self.enqueue_object(item)
            logger.debug(f"Resync of {self.name} enqueued {len(items)} objects")

    async def _handle(self, request: ReconcileRequest) -> ReconcileResult:
        kind = self.reconciler.kind
        with with_correlation_id():
            with trace_span(f"reconcile_{kind.lower()}", kind=kind, attributes={"resource.key": request.key}):
                start_time = time.time()
                try:
                    result = await self.reconciler.reconcile(request.namespace, request.name)
                    if result.error:
                        metrics.reconcile_total.labels(kind=kind, result="error").inc()
                        metrics.error_total.labels(kind=kind, error_type=result.error).inc()
                    else:
                        metrics.reconcile_total.labels(kind=kind, result="success").inc()
                    return result
                except Exception as e:
                    metrics.reconcile_total.labels(kind=kind, result="error").inc()
                    metrics.error_total.labels(kind=kind, error_type=type(e).__name__).inc()
                    raise
                finally:
                    duration = time.time() - start_time
                    metrics.reconcile_duration_seconds.labels(kind=kind).observe(duration)
