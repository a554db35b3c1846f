"""Uptime check — pings each configured URL, retrying once before declaring it down."""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.exceptions import CheckConfigError
from forge_ops.core.config import EndpointConfig, UptimeConfig
from forge_ops.core.types import (
    CheckSource,
    EndpointStatus,
    HealthStatus,
    UptimeData,
    UptimeResult,
)

logger = structlog.stdlib.get_logger()


class UptimeCheck(BaseCheck[UptimeData]):
    """Probes every endpoint concurrently.

    A response of any kind means the endpoint is up: 2xx is healthy,
    anything else degraded. A transport failure or timeout is retried once
    after ``retry_delay_secs``; a second failure marks the endpoint down.
    """

    source = CheckSource.UPTIME
    result_model = UptimeResult

    def __init__(self, config: UptimeConfig) -> None:
        super().__init__(timeout_secs=config.timeout_secs)
        self._config = config

    def empty_payload(self) -> UptimeData:
        return UptimeData()

    async def execute(self) -> UptimeData:
        targets = self._config.targets()
        if not targets:
            raise CheckConfigError("no uptime endpoints configured")
        results = await asyncio.gather(*(self._check_endpoint(t) for t in targets))
        return UptimeData(endpoints=list(results))

    async def _check_endpoint(self, target: EndpointConfig) -> EndpointStatus:
        try:
            return await self._ping(target)
        except httpx.HTTPError as exc:
            logger.info(
                "uptime_first_attempt_failed",
                url=target.url,
                error=repr(exc),
                retry_in_secs=self._config.retry_delay_secs,
            )

        await asyncio.sleep(self._config.retry_delay_secs)

        try:
            return await self._ping(target)
        except httpx.HTTPError as exc:
            logger.warning("uptime_endpoint_down", url=target.url, error=repr(exc))
            return EndpointStatus(
                name=target.name,
                url=target.url,
                status=HealthStatus.DOWN,
            )

    async def _ping(self, target: EndpointConfig) -> EndpointStatus:
        start = time.monotonic()
        response = await self._client().get(target.url, follow_redirects=True)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        status = (
            HealthStatus.HEALTHY if response.is_success else HealthStatus.DEGRADED
        )
        logger.debug(
            "uptime_response",
            url=target.url,
            status_code=response.status_code,
            response_ms=elapsed_ms,
        )
        return EndpointStatus(
            name=target.name,
            url=target.url,
            status=status,
            response_ms=elapsed_ms,
            status_code=response.status_code,
        )
