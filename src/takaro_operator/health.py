"""Health, readiness and metrics endpoints for the operator."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable

from prometheus_client import make_wsgi_app
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Request, Response

from .controllers.registry import ControllerRegistry

logger = logging.getLogger(__name__)


def _json_response(payload: dict[str, Any], status: int = 200) -> Response:
    return Response(json.dumps(payload), mimetype="application/json", status=status)


def readiness(
    registry: ControllerRegistry,
    connectivity_check: Callable[[], bool] | None = None,
) -> tuple[bool, dict[str, Any]]:
    """Evaluate readiness.

    Ready means the registry was started, every controller is running and
    the connectivity check passes.

    Returns:
        Whether the operator is ready and a JSON-able body describing why
    """
    controllers = registry.get_status()
    if not registry.is_running():
        return False, {"status": "not ready", "reason": "controllers not started", "controllers": controllers}

    stopped = [c["name"] for c in controllers if not c["running"]]
    if stopped:
        return False, {
            "status": "not ready",
            "reason": f"controllers not running: {', '.join(stopped)}",
            "controllers": controllers,
        }

    if connectivity_check is not None:
        try:
            connected = connectivity_check()
        except Exception as e:
            logger.warning(f"Connectivity check raised: {e}")
            connected = False
        if not connected:
            return False, {
                "status": "not ready",
                "reason": "cannot connect to Kubernetes API",
                "controllers": controllers,
            }

    return True, {"status": "ready", "controllers": controllers}


def create_combined_wsgi_app(
    registry: ControllerRegistry,
    connectivity_check: Callable[[], bool] | None = None,
) -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Args:
        registry: Registry whose controllers determine readiness
        connectivity_check: Callable returning False when the cluster is unreachable

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        """WSGI app that routes health endpoints and delegates /metrics to prometheus."""
        request = Request(environ)
        path = request.path

        if path == "/healthz":
            response = _json_response({"status": "ok"})
        elif path == "/readyz":
            ready, body = readiness(registry, connectivity_check)
            response = _json_response(body, status=200 if ready else 503)
        elif path == "/controllers":
            response = _json_response({"running": registry.is_running(), "controllers": registry.get_status()})
        elif path == "/metrics":
            return metrics_app(environ, start_response)
        else:
            response = _json_response({"error": "not found"}, status=404)

        return response(environ, start_response)

    return combined_app


class HealthServer:
    """Serves the combined app from a daemon thread."""

    def __init__(
        self,
        port: int,
        registry: ControllerRegistry,
        connectivity_check: Callable[[], bool] | None = None,
        host: str = "",
    ) -> None:
        self.port = port
        self.host = host
        self.app = create_combined_wsgi_app(registry, connectivity_check)
        self._server: BaseWSGIServer | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self._thread = threading.Thread(target=self._server.serve_forever, name="health-server", daemon=True)
        self._thread.start()
        logger.info(f"Health and metrics server listening on port {self.port}")

    def stop(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server = None
        self._thread = None
