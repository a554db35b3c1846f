"""Abstract base check — envelope wrapping, fault capture, HTTP client lifecycle."""

from __future__ import annotations

import abc
import time
from types import TracebackType
from typing import Any, Generic

import httpx
import structlog

from forge_ops.checks.exceptions import CheckConnectionError, CheckParseError
from forge_ops.core.types import CheckResult, CheckSource, P

logger = structlog.stdlib.get_logger()


class BaseCheck(abc.ABC, Generic[P]):
    """Abstract base class for health checks.

    Subclasses implement ``execute()`` and ``empty_payload()``. The base
    class guarantees ``run()`` never raises: any exception from
    ``execute()`` becomes a failed envelope carrying ``empty_payload()``.

    Usage::

        async with UptimeCheck(config) as check:
            result = await check.run()
    """

    source: CheckSource
    result_model: type[CheckResult[Any]]

    def __init__(self, timeout_secs: float = 10.0) -> None:
        self._timeout_secs = timeout_secs
        self._http: httpx.AsyncClient | None = None

    @property
    def timeout_secs(self) -> float:
        return self._timeout_secs

    @abc.abstractmethod
    async def execute(self) -> P:
        """Query the monitored system and build the payload."""

    @abc.abstractmethod
    def empty_payload(self) -> P:
        """Zero-valued payload used when the check cannot answer."""

    def failed(self, reason: str) -> CheckResult[P]:
        """Build a failed envelope for this check."""
        return self.result_model.failure(self.source, self.empty_payload(), reason)

    async def run(self) -> CheckResult[P]:
        """Execute the check and wrap the outcome in a result envelope."""
        start = time.monotonic()
        try:
            payload = await self.execute()
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            logger.warning(
                "check_failed",
                source=self.source,
                error=reason,
                error_type=type(exc).__name__,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            return self.failed(reason)

        logger.debug(
            "check_completed",
            source=self.source,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return self.result_model.success(self.source, payload)

    # ── HTTP helpers ────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_secs))
        return self._http

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        label: str,
        **kwargs: Any,
    ) -> tuple[Any, httpx.Response]:
        """Send a request and decode its JSON body.

        Raises CheckConnectionError on transport or HTTP status errors and
        CheckParseError on an undecodable body.
        """
        try:
            response = await self._client().request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CheckConnectionError(
                f"{label} returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CheckConnectionError(f"{label} request failed: {exc!r}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise CheckParseError(f"{label} returned invalid JSON") from exc
        return body, response

    async def close(self) -> None:
        """Close the HTTP client if one was opened."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> BaseCheck[P]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
