"""Supervised watch over a custom resource type."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from kubernetes import client, watch

from ... import metrics
from ...utils.errors import sanitize_exception
from .store import ResourceStore

logger = logging.getLogger(__name__)

HTTP_GONE = 410


class EventKind(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class WatchEvent:
    """A change to one object."""

    kind: EventKind
    resource: dict[str, Any]

    @property
    def key(self) -> str:
        meta = self.resource.get("metadata", {})
        namespace = meta.get("namespace")
        name = meta.get("name", "")
        return f"{namespace}/{name}" if namespace else name


class StaleWatchError(Exception):
    """The watch cursor expired and the stream must be reopened from a fresh list."""


class WatchFailedError(Exception):
    """The watch kept failing and gave up."""


class WatchAdapter:
    """Turns the kubernetes watch stream into typed events on an asyncio queue.

    The stream is read in a daemon thread. Each event is handed to the event
    loop and put on the output queue, so a full queue blocks the reader.

    Every (re)start begins with a full list whose objects are emitted as
    ADDED events. Expired cursors restart after ``stale_restart_delay``
    without counting as a failure. Other errors restart with exponential
    backoff until ``max_failures`` consecutive failures.
    """

    def __init__(
        self,
        store: ResourceStore,
        controller_name: str,
        timeout_seconds: int = 300,
        max_failures: int = 10,
        stale_restart_delay: float = 1.0,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
        watch_factory: Callable[[], Any] = watch.Watch,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.controller_name = controller_name
        self.timeout_seconds = timeout_seconds
        self.max_failures = max_failures
        self.stale_restart_delay = stale_restart_delay
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._watch_factory = watch_factory
        self._sleep = sleep
        self._watch: Any = None
        self._stopped = threading.Event()

    def stop(self) -> None:
        """Ask the stream to end."""
        self._stopped.set()
        if self._watch is not None:
            self._watch.stop()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def backoff_delay(self, failures: int) -> float:
        return min(self.backoff_base * 2 ** (failures - 1), self.backoff_max)

    async def run(self, out: asyncio.Queue, resource_version: str | None = None) -> None:
        """Produce events onto ``out`` until stopped.

        Args:
            out: Queue receiving WatchEvent objects
            resource_version: Cursor to resume from, a fresh list is taken when None

        Raises:
            WatchFailedError: After ``max_failures`` consecutive failures
        """
        self._stopped.clear()
        failures = 0

        while not self.stopped:
            try:
                if resource_version is None:
                    items, resource_version = await self.store.list()
                    for item in items:
                        await out.put(WatchEvent(EventKind.ADDED, item))
                resource_version = await self._stream(resource_version, out)
                failures = 0
            except asyncio.CancelledError:
                self.stop()
                raise
            except StaleWatchError:
                logger.info(f"Watch for {self.controller_name} expired, restarting from a fresh list")
                metrics.watch_restarts_total.labels(controller=self.controller_name, reason="stale").inc()
                resource_version = None
                await self._sleep(self.stale_restart_delay)
            except Exception as e:
                if self.stopped:
                    break
                failures += 1
                metrics.watch_restarts_total.labels(controller=self.controller_name, reason="error").inc()
                if failures >= self.max_failures:
                    logger.error(
                        f"Watch for {self.controller_name} failed {failures} times in a row, giving up: "
                        f"{sanitize_exception(e)}"
                    )
                    raise WatchFailedError(
                        f"Watch for {self.controller_name} failed {failures} consecutive times"
                    ) from e
                delay = self.backoff_delay(failures)
                logger.warning(
                    f"Watch for {self.controller_name} failed ({failures}/{self.max_failures}), "
                    f"restarting in {delay:.1f}s: {sanitize_exception(e)}"
                )
                resource_version = None
                await self._sleep(delay)

    async def _stream(self, resource_version: str, out: asyncio.Queue) -> str:
        """Read one watch stream in a daemon thread.

        Returns:
            The last resourceVersion seen, to resume from
        """
        loop = asyncio.get_running_loop()
        done: asyncio.Future = loop.create_future()

        def _resolve(result: Any, error: BaseException | None) -> None:
            if done.done():
                return
            if error is not None:
                done.set_exception(error)
            else:
                done.set_result(result)

        def _target() -> None:
            try:
                result = self._read_stream(resource_version, out, loop)
            except BaseException as e:
                loop.call_soon_threadsafe(_resolve, None, e)
            else:
                loop.call_soon_threadsafe(_resolve, result, None)

        thread = threading.Thread(target=_target, name=f"watch-{self.controller_name}", daemon=True)
        thread.start()
        return await done

    def _read_stream(
        self,
        resource_version: str,
        out: asyncio.Queue,
        loop: asyncio.AbstractEventLoop,
    ) -> str:
        fn, kwargs = self.store.list_call()
        self._watch = self._watch_factory()
        try:
            for raw in self._watch.stream(
                fn,
                **kwargs,
                resource_version=resource_version,
                timeout_seconds=self.timeout_seconds,
            ):
                if self.stopped:
                    break
                event_type = raw.get("type")
                obj = raw.get("object") or {}

                if event_type == "ERROR":
                    code = obj.get("code") if isinstance(obj, dict) else None
                    if code == HTTP_GONE:
                        raise StaleWatchError(obj.get("message", "resource version expired"))
                    raise client.exceptions.ApiException(status=code, reason=str(obj))

                resource_version = obj.get("metadata", {}).get("resourceVersion") or resource_version
                if event_type not in EventKind.__members__:
                    # BOOKMARK and friends only move the cursor
                    continue

                event = WatchEvent(EventKind(event_type), obj)
                asyncio.run_coroutine_threadsafe(out.put(event), loop).result()
        except client.exceptions.ApiException as e:
            if e.status == HTTP_GONE:
                raise StaleWatchError(str(e.reason)) from e
            raise
        finally:
            self._watch.stop()
        return resource_version
