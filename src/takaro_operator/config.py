"""Environment-driven configuration for the Takaro Operator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping
from urllib.parse import urlparse

from . import __version__

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(ValueError):
    """Raised when the operator configuration is invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Configuration validation failed:\n" + "\n".join(errors))


@dataclass
class TakaroApiSettings:
    """Settings for the Takaro API client."""

    url: str = "https://api.takaro.dev"
    token: str = ""
    timeout: float = 30.0
    retries: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    user_agent: str = f"takaro-operator/{__version__}"


@dataclass
class Settings:
    """Operator settings."""

    takaro: TakaroApiSettings = field(default_factory=TakaroApiSettings)
    watch_namespace: str | None = None
    reconcile_interval: float = 30.0
    requeue_interval: float = 60.0
    error_requeue_interval: float = 5.0
    resync_interval: float = 300.0
    max_concurrent_reconciles: int = 1
    watch_timeout_seconds: int = 300
    watch_max_failures: int = 10
    metrics_port: int = 8080
    log_level: str = "INFO"
    kubeconfig: str | None = None
    domain_controller_enabled: bool = True
    tracing_enabled: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables and validate them.

        Raises:
            ConfigError: If a value cannot be parsed or fails validation
        """
        env = os.environ if environ is None else environ
        errors: list[str] = []

        def _get(name: str, default: str) -> str:
            return env.get(name, default)

        def _number(name: str, default: str, cast: type) -> float | int:
            raw = _get(name, default)
            try:
                return cast(raw)
            except ValueError:
                errors.append(f"{name} must be a number, got {raw!r}")
                return cast(default)

        def _flag(name: str, default: str) -> bool:
            return _get(name, default).strip().lower() in ("1", "true", "yes", "on")

        takaro = TakaroApiSettings(
            url=_get("TAKARO_API_URL", "https://api.takaro.dev"),
            token=_get("TAKARO_API_TOKEN", ""),
            timeout=_number("TAKARO_API_TIMEOUT_SECONDS", "30", float),
            retries=_number("TAKARO_API_RETRIES", "3", int),
            retry_delay=_number("TAKARO_API_RETRY_DELAY_SECONDS", "1.0", float),
            max_retry_delay=_number("TAKARO_API_MAX_RETRY_DELAY_SECONDS", "30.0", float),
            user_agent=_get("TAKARO_API_USER_AGENT", f"takaro-operator/{__version__}"),
        )

        settings = cls(
            takaro=takaro,
            watch_namespace=env.get("WATCH_NAMESPACE") or env.get("OPERATOR_NAMESPACE") or None,
            reconcile_interval=_number("RECONCILE_INTERVAL_SECONDS", "30", float),
            requeue_interval=_number("REQUEUE_INTERVAL_SECONDS", "60", float),
            error_requeue_interval=_number("ERROR_REQUEUE_INTERVAL_SECONDS", "5", float),
            resync_interval=_number("RESYNC_INTERVAL_SECONDS", "300", float),
            max_concurrent_reconciles=_number("MAX_CONCURRENT_RECONCILES", "1", int),
            watch_timeout_seconds=_number("WATCH_TIMEOUT_SECONDS", "300", int),
            watch_max_failures=_number("WATCH_MAX_FAILURES", "10", int),
            metrics_port=_number("METRICS_PORT", "8080", int),
            log_level=_get("LOG_LEVEL", "INFO").upper(),
            kubeconfig=env.get("KUBECONFIG") or None,
            domain_controller_enabled=_flag("FEATURE_DOMAIN_CONTROLLER", "true"),
            tracing_enabled=_flag("OTEL_TRACES_ENABLED", "false"),
        )

        errors.extend(settings.validate())
        if errors:
            raise ConfigError(errors)
        return settings

    def validate(self) -> list[str]:
        """Return a list of validation problems, empty when valid."""
        errors: list[str] = []

        if not self.takaro.token:
            errors.append("TAKARO_API_TOKEN is required")

        parsed = urlparse(self.takaro.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("TAKARO_API_URL must be a valid http(s) URL")

        if self.takaro.timeout < 1:
            errors.append("TAKARO_API_TIMEOUT_SECONDS must be at least 1")

        if not 0 <= self.takaro.retries <= 10:
            errors.append("TAKARO_API_RETRIES must be between 0 and 10")

        if self.takaro.retry_delay < 0:
            errors.append("TAKARO_API_RETRY_DELAY_SECONDS must not be negative")

        if self.takaro.max_retry_delay < self.takaro.retry_delay:
            errors.append("TAKARO_API_MAX_RETRY_DELAY_SECONDS must be >= TAKARO_API_RETRY_DELAY_SECONDS")

        if self.reconcile_interval < 1:
            errors.append("RECONCILE_INTERVAL_SECONDS must be at least 1")

        if self.requeue_interval <= 0:
            errors.append("REQUEUE_INTERVAL_SECONDS must be positive")

        if self.error_requeue_interval <= 0:
            errors.append("ERROR_REQUEUE_INTERVAL_SECONDS must be positive")

        if self.resync_interval < 0:
            errors.append("RESYNC_INTERVAL_SECONDS must not be negative")

        if not 1 <= self.max_concurrent_reconciles <= 100:
            errors.append("MAX_CONCURRENT_RECONCILES must be between 1 and 100")

        if self.watch_timeout_seconds < 1:
            errors.append("WATCH_TIMEOUT_SECONDS must be at least 1")

        if self.watch_max_failures < 1:
            errors.append("WATCH_MAX_FAILURES must be at least 1")

        if not 1 <= self.metrics_port <= 65535:
            errors.append("METRICS_PORT must be between 1 and 65535")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

        if not self.domain_controller_enabled:
            errors.append("At least one controller must be enabled")

        return errors
