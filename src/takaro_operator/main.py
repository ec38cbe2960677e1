"""Main entry point for the Takaro Operator."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from . import __version__
from . import logging as structured_logging
from .config import ConfigError, Settings
from .runtime import OperatorContext
from .tracing import initialize_tracing, shutdown_tracing
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    """Run the operator until SIGTERM or SIGINT."""
    context = OperatorContext(settings)
    context.init()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    try:
        if not await context.takaro.check_connectivity():
            logger.warning("Takaro API is not reachable yet, reconciles will retry")
        context.health.start()
        await context.registry.start_all()
        logger.info(f"Takaro Operator {__version__} running")
        await stop.wait()
        logger.info("Shutdown signal received")
    finally:
        await context.shutdown()


def main() -> None:
    """Console script entry point."""
    structured_logging.setup_structured_logging()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    structured_logging.setup_structured_logging(settings.log_level)
    initialize_tracing(settings.tracing_enabled)
    try:
        asyncio.run(run(settings))
    except Exception as e:
        logger.error(f"Operator failed: {sanitize_exception(e)}")
        sys.exit(1)
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
