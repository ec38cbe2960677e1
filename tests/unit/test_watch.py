"""Tests for the supervised watch."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from kubernetes import client

from takaro_operator.services.kubernetes.watch import EventKind, WatchAdapter, WatchFailedError


def _obj(name: str, resource_version: str) -> dict:
    return {"metadata": {"name": name, "namespace": "games", "resourceVersion": resource_version}}


class FakeWatch:
    """Replays scripted watch sessions, then stops the adapter."""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.calls: list[dict] = []
        self.adapter: WatchAdapter | None = None

    def __call__(self) -> FakeWatch:
        return self

    def stream(self, fn, **kwargs):
        self.calls.append(kwargs)
        if not self.sessions:
            self.adapter.stop()
            return
        for item in self.sessions.pop(0):
            if isinstance(item, Exception):
                raise item
            yield item

    def stop(self) -> None:
        pass


def _adapter(fake: FakeWatch, items=None, **kwargs) -> tuple[WatchAdapter, list[float]]:
    store = MagicMock()
    store.list = AsyncMock(return_value=(items or [], "50"))
    store.list_call.return_value = (MagicMock(), {"group": "takaro.io"})
    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    adapter = WatchAdapter(store, "domain", watch_factory=fake, sleep=_sleep, **kwargs)
    fake.adapter = adapter
    return adapter, sleeps


def _drain(queue: asyncio.Queue) -> list:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


class TestWatchAdapter:
    """Test cases for WatchAdapter."""

    @pytest.mark.asyncio
    async def test_streams_events(self):
        """Test that events are typed and bookmarks only move the cursor."""
        fake = FakeWatch(
            [
                {"type": "ADDED", "object": _obj("a", "11")},
                {"type": "MODIFIED", "object": _obj("a", "12")},
                {"type": "BOOKMARK", "object": {"metadata": {"resourceVersion": "13"}}},
                {"type": "DELETED", "object": _obj("b", "14")},
            ]
        )
        adapter, _ = _adapter(fake)
        out: asyncio.Queue = asyncio.Queue()

        await adapter.run(out, resource_version="10")

        events = _drain(out)
        assert [e.kind for e in events] == [EventKind.ADDED, EventKind.MODIFIED, EventKind.DELETED]
        assert events[0].key == "games/a"
        assert fake.calls[0]["resource_version"] == "10"
        assert fake.calls[0]["timeout_seconds"] == 300
        # the next stream resumes after the last event seen
        assert fake.calls[1]["resource_version"] == "14"
        adapter.store.list.assert_not_called()

    @pytest.mark.asyncio
    async def test_lists_without_cursor(self):
        """Test that a missing cursor starts with a list emitted as ADDED."""
        fake = FakeWatch()
        adapter, _ = _adapter(fake, items=[_obj("a", "1"), _obj("b", "2")])
        out: asyncio.Queue = asyncio.Queue()

        await adapter.run(out)

        events = _drain(out)
        assert [e.kind for e in events] == [EventKind.ADDED, EventKind.ADDED]
        assert fake.calls[0]["resource_version"] == "50"

    @pytest.mark.asyncio
    async def test_stale_error_event_restarts(self):
        """Test that an expired cursor relists after a short delay."""
        fake = FakeWatch([{"type": "ERROR", "object": {"code": 410, "message": "too old resource version"}}])
        adapter, sleeps = _adapter(fake, items=[_obj("a", "1")])
        out: asyncio.Queue = asyncio.Queue()

        await adapter.run(out, resource_version="10")

        assert sleeps == [1.0]
        adapter.store.list.assert_awaited_once()
        assert [e.kind for e in _drain(out)] == [EventKind.ADDED]
        assert fake.calls[1]["resource_version"] == "50"

    @pytest.mark.asyncio
    async def test_stale_api_exception_restarts(self):
        """Test that a 410 raised by the client is treated as stale."""
        fake = FakeWatch([client.exceptions.ApiException(status=410, reason="Gone")])
        adapter, sleeps = _adapter(fake)

        await adapter.run(asyncio.Queue(), resource_version="10")

        assert sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_errors_back_off(self):
        """Test that failures back off and recover."""
        fake = FakeWatch(
            [client.exceptions.ApiException(status=500)],
            [client.exceptions.ApiException(status=500)],
        )
        adapter, sleeps = _adapter(fake)

        await adapter.run(asyncio.Queue(), resource_version="10")

        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_failures(self):
        """Test that consecutive failures end the watch."""
        fake = FakeWatch(*[[client.exceptions.ApiException(status=500)] for _ in range(3)])
        adapter, sleeps = _adapter(fake, max_failures=3)

        with pytest.raises(WatchFailedError):
            await adapter.run(asyncio.Queue(), resource_version="10")

        assert sleeps == [1.0, 2.0]

    def test_backoff_capped(self):
        """Test the backoff schedule."""
        adapter, _ = _adapter(FakeWatch(), backoff_max=30.0)

        assert [adapter.backoff_delay(n) for n in (1, 2, 3, 6, 10)] == [1.0, 2.0, 4.0, 30.0, 30.0]
