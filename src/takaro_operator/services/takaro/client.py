"""Takaro API client implementation."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from ... import metrics
from ...builders.domain import build_create_payload, build_update_payload
from ...config import TakaroApiSettings
from ...models.domain import DomainLimits, DomainSettings
from ...tracing import trace_span
from ...utils.errors import sanitize_error_message
from .errors import TakaroClientError, is_retryable, parse_retry_after
from .models import CreatedDomain, TakaroDomain

logger = logging.getLogger(__name__)

API_TYPE = "takaro"


class wait_retry_after(wait_base):
    """Exponential backoff with jitter that honors Retry-After.

    Attempt ``n`` (0-based) waits ``base * 2**n`` plus up to 10% jitter.
    A server supplied Retry-After takes precedence. Both are capped.
    """

    def __init__(self, base: float, max_delay: float):
        self.base = base
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, TakaroClientError) and error.retry_after is not None:
            return min(error.retry_after, self.max_delay)

        delay = self.base * 2 ** (retry_state.attempt_number - 1)
        jitter = random.uniform(0, 0.1 * delay)
        return min(delay + jitter, self.max_delay)


class TakaroClient:
    """Async client for the Takaro domain API."""

    def __init__(
        self,
        settings: TakaroApiSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the Takaro client.

        Args:
            settings: API location, credential and retry settings
            transport: Optional httpx transport, used by tests
            sleep: Coroutine used to wait between attempts
        """
        self.settings = settings
        self._sleep = sleep
        self.client = httpx.AsyncClient(
            base_url=settings.url.rstrip("/"),
            timeout=settings.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {settings.token}",
                "User-Agent": settings.user_agent,
                "Accept": "application/json",
            },
        )

    async def __aenter__(self) -> TakaroClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _retrying(self, retries: int | None = None) -> AsyncRetrying:
        retries = self.settings.retries if retries is None else retries
        return AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(retries + 1),
            wait=wait_retry_after(self.settings.retry_delay, self.settings.max_retry_delay),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Perform a single HTTP request and map failures to TakaroClientError."""
        start_time = time.time()
        try:
            with trace_span(
                f"takaro.{operation}",
                attributes={"http.method": method, "http.route": path},
            ):
                try:
                    response = await self.client.request(method, path, json=json)
                except httpx.TransportError as e:
                    raise TakaroClientError(
                        f"{operation} failed: {sanitize_error_message(str(e)) or type(e).__name__}"
                    ) from e

                if response.status_code >= 400:
                    if response.status_code == 429:
                        metrics.rate_limit_hits_total.labels(api_type=API_TYPE).inc()
                    raise TakaroClientError(
                        f"{operation} failed with HTTP {response.status_code}: "
                        f"{sanitize_error_message(response.text[:200])}",
                        status_code=response.status_code,
                        retry_after=parse_retry_after(response.headers.get("Retry-After")),
                    )
        except TakaroClientError:
            metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type=API_TYPE, operation=operation).observe(duration)

        metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="success").inc()
        return response

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        retries: int | None = None,
    ) -> Any:
        """Perform a request with retries and return the ``data`` envelope."""
        async for attempt in self._retrying(retries):
            with attempt:
                response = await self._send(operation, method, path, json)

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("data") if isinstance(body, dict) else body

    async def create_domain(
        self,
        name: str,
        external_reference: str,
        limits: DomainLimits,
        settings: DomainSettings,
    ) -> CreatedDomain:
        """Create a domain.

        Args:
            name: Domain name
            external_reference: Deterministic reference of the owning resource
            limits: Domain limits
            settings: Domain settings

        Returns:
            The created domain and its root user credentials

        Raises:
            TakaroClientError: If the domain could not be created
        """
        logger.info(f"Creating domain {name} with external reference {external_reference}")
        payload = build_create_payload(name, external_reference, limits, settings)
        data = await self._request("create_domain", "POST", "/domain", json=payload)
        return CreatedDomain.from_api(data or {})

    async def update_domain(
        self,
        domain_id: str,
        limits: DomainLimits,
        settings: DomainSettings,
    ) -> TakaroDomain:
        """Update a domain's limits and state."""
        logger.info(f"Updating domain {domain_id}")
        payload = build_update_payload(limits, settings)
        data = await self._request("update_domain", "PUT", f"/domain/{domain_id}", json=payload)
        return TakaroDomain.from_api(data or {"id": domain_id})

    async def delete_domain(self, domain_id: str) -> None:
        """Delete a domain. A missing domain counts as deleted."""
        logger.info(f"Deleting domain {domain_id}")
        try:
            await self._request("delete_domain", "DELETE", f"/domain/{domain_id}")
        except TakaroClientError as e:
            if e.not_found:
                logger.info(f"Domain {domain_id} already deleted")
                return
            raise

    async def get_domain(self, domain_id: str) -> TakaroDomain | None:
        """Get a domain by id, None if it does not exist."""
        try:
            data = await self._request("get_domain", "GET", f"/domain/{domain_id}")
        except TakaroClientError as e:
            if e.not_found:
                return None
            raise
        return TakaroDomain.from_api(data) if data else None

    async def generate_registration_token(self, domain_id: str) -> str:
        """Generate a registration token for a domain."""
        logger.info(f"Generating registration token for domain {domain_id}")
        data = await self._request("generate_token", "POST", f"/domain/{domain_id}/token")
        token = (data or {}).get("token")
        if not token:
            raise TakaroClientError(f"generate_token returned no token for domain {domain_id}")
        return token

    async def check_connectivity(self) -> bool:
        """Check that the Takaro API answers its health endpoint."""
        try:
            await self._request("healthz", "GET", "/healthz", retries=0)
        except TakaroClientError as e:
            logger.warning(f"Takaro API connectivity check failed: {e}")
            return False
        return True
