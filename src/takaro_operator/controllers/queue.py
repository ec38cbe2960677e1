"""Deduplicating, delayed reconcile queue."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from .. import metrics
from ..utils.errors import sanitize_exception

logger = logging.getLogger(__name__)

DEFAULT_REQUEUE_DELAY = 5.0


@dataclass(frozen=True)
class ReconcileRequest:
    """Identity of an object to reconcile."""

    namespace: str
    name: str
    resource_version: str | None = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


@dataclass
class ReconcileResult:
    """Outcome of one reconcile.

    ``requeue_after`` implies a requeue. A bare ``requeue`` uses the queue's
    default delay. ``error`` names the failure a reconciler handled itself.
    """

    requeue: bool = False
    requeue_after: float | None = None
    error: str | None = None

    @property
    def wants_requeue(self) -> bool:
        return self.requeue or self.requeue_after is not None


Handler = Callable[[ReconcileRequest], Awaitable["ReconcileResult | None"]]


class ReconcileQueue:
    """Pending reconcile requests keyed by object identity.

    A key is pending at most once (the latest request wins) and is never
    handled by two reconciles at the same time. Distinct keys run
    concurrently up to ``max_concurrent``. All methods must be called from
    the event loop thread.
    """

    def __init__(
        self,
        name: str,
        max_concurrent: int = 1,
        default_requeue_delay: float = DEFAULT_REQUEUE_DELAY,
        error_requeue_delay: float = DEFAULT_REQUEUE_DELAY,
    ) -> None:
        self.name = name
        self.max_concurrent = max_concurrent
        self.default_requeue_delay = default_requeue_delay
        self.error_requeue_delay = error_requeue_delay
        self._pending: dict[str, ReconcileRequest] = {}
        self._in_flight: set[str] = set()
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._has_work = asyncio.Event()
        self._semaphore = asyncio.Semaphore(max_concurrent)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: str) -> bool:
        return key in self._pending

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def enqueue(self, request: ReconcileRequest) -> None:
        """Mark a key for reconciliation, replacing any pending request for it."""
        self._pending[request.key] = request
        metrics.queue_depth.labels(controller=self.name).set(len(self._pending))
        self._has_work.set()

    def requeue_after(self, request: ReconcileRequest, delay: float, reason: str = "requeue") -> None:
        """Enqueue a request once ``delay`` seconds have passed.

        Only the latest timer per key is kept.
        """
        key = request.key
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()

        metrics.requeue_total.labels(controller=self.name, reason=reason).inc()
        loop = asyncio.get_running_loop()

        def _fire() -> None:
            self._timers.pop(key, None)
            self.enqueue(request)

        self._timers[key] = loop.call_later(max(delay, 0.0), _fire)

    async def wait_for_work(self, timeout: float | None = None) -> bool:
        """Wait until something is enqueued or the timeout expires.

        Returns:
            True if work is pending
        """
        if not self._pending:
            try:
                await asyncio.wait_for(self._has_work.wait(), timeout)
            except asyncio.TimeoutError:
                pass
        self._has_work.clear()
        return bool(self._pending)

    async def drain(self, handler: Handler) -> int:
        """Reconcile a snapshot of the pending keys.

        Keys currently in flight stay pending for the next drain. A failing
        handler is logged and its key retried after the error delay.

        Returns:
            Number of requests handed to the handler
        """
        tasks = []
        for key in list(self._pending):
            if key in self._in_flight:
                continue
            request = self._pending.pop(key)
            self._in_flight.add(key)
            tasks.append(asyncio.create_task(self._process(request, handler)))

        metrics.queue_depth.labels(controller=self.name).set(len(self._pending))
        if tasks:
            await asyncio.gather(*tasks)
        return len(tasks)

    async def _process(self, request: ReconcileRequest, handler: Handler) -> None:
        try:
            async with self._semaphore:
                result = await handler(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error reconciling {self.name} {request.key}: {sanitize_exception(e)}")
            self.requeue_after(request, self.error_requeue_delay, reason="error")
            return
        finally:
            self._in_flight.discard(request.key)

        if result is not None and result.wants_requeue:
            delay = self.default_requeue_delay if result.requeue_after is None else result.requeue_after
            logger.debug(f"Requeueing {self.name} {request.key} after {delay}s")
            self.requeue_after(request, delay)

    def clear(self) -> None:
        """Drop pending requests and cancel scheduled requeues."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()
        metrics.queue_depth.labels(controller=self.name).set(0)
