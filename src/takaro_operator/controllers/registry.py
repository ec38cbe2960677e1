"""Lifecycle container for controllers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from ..utils.errors import sanitize_exception

logger = logging.getLogger(__name__)


class ManagedController(Protocol):
    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    def is_running(self) -> bool:
        ...


class RegistryError(Exception):
    """Raised for invalid registry operations."""


class ControllerRegistry:
    """Starts and stops a set of named controllers together."""

    def __init__(self) -> None:
        self._controllers: dict[str, ManagedController] = {}
        self._started = False

    def register(self, name: str, controller: ManagedController) -> None:
        """Register a controller under a unique name.

        Raises:
            RegistryError: If the registry has started or the name is taken
        """
        if self._started:
            raise RegistryError("Cannot register controllers after registry has started")
        if name in self._controllers:
            raise RegistryError(f"Controller '{name}' is already registered")
        logger.info(f"Registering controller {name}")
        self._controllers[name] = controller

    async def start_all(self) -> None:
        """Start every controller concurrently.

        If any controller fails to start, all controllers are stopped again
        and the first error is raised.
        """
        if self._started:
            logger.info("Controller registry is already started")
            return

        logger.info(f"Starting {len(self._controllers)} controllers")
        self._started = True
        names = list(self._controllers)
        results = await asyncio.gather(
            *(self._controllers[name].start() for name in names),
            return_exceptions=True,
        )

        failures = [(name, result) for name, result in zip(names, results) if isinstance(result, BaseException)]
        if failures:
            for name, error in failures:
                logger.error(f"Failed to start controller {name}: {sanitize_exception(error)}")
            logger.error("Failed to start all controllers, stopping")
            await self.stop_all()
            raise failures[0][1]

        logger.info("All controllers started")

    async def stop_all(self) -> None:
        """Stop every controller. Errors are logged, not raised."""
        if not self._started:
            logger.info("Controller registry is not started")
            return

        logger.info(f"Stopping {len(self._controllers)} controllers")
        self._started = False
        names = list(self._controllers)
        results = await asyncio.gather(
            *(self._controllers[name].stop() for name in names),
            return_exceptions=True,
        )
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to stop controller {name}: {sanitize_exception(result)}")
        logger.info("All controllers stopped")

    def get_controller(self, name: str) -> ManagedController | None:
        return self._controllers.get(name)

    def controller_names(self) -> list[str]:
        return list(self._controllers)

    def is_running(self) -> bool:
        return self._started

    def get_status(self) -> list[dict[str, Any]]:
        """Snapshot of every controller's running state."""
        return [
            {"name": name, "running": controller.is_running()}
            for name, controller in self._controllers.items()
        ]
