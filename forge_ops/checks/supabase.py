"""Supabase check — database reachability and shop activity over the REST API."""

from __future__ import annotations

import datetime
from typing import Any

import httpx
import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.exceptions import (
    CheckConfigError,
    CheckConnectionError,
    CheckParseError,
)
from forge_ops.core.config import SupabaseConfig
from forge_ops.core.types import (
    CheckSource,
    HealthStatus,
    SilentShop,
    SupabaseData,
    SupabaseResult,
    utcnow,
)

logger = structlog.stdlib.get_logger()


def _parse_content_range(header: str | None) -> int:
    """Extract the total from a PostgREST ``Content-Range`` header.

    ``"0-0/42"`` → 42, ``"*/0"`` → 0.
    """
    if not header or "/" not in header:
        raise CheckParseError(f"missing row count in Content-Range: {header!r}")
    total = header.rsplit("/", 1)[1]
    try:
        return int(total)
    except ValueError as exc:
        raise CheckParseError(f"unexpected Content-Range: {header!r}") from exc


def _parse_timestamp(value: object) -> datetime.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def _parse_silent_shops(
    rows: object,
    now: datetime.datetime,
) -> list[SilentShop]:
    """Convert ``get_silent_shops`` RPC rows into SilentShop entries."""
    if not isinstance(rows, list):
        raise CheckParseError("silent shops RPC did not return a list")

    shops: list[SilentShop] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        last_activity = _parse_timestamp(row.get("last_activity_at"))
        days_silent = (now - last_activity).days if last_activity else None
        shops.append(SilentShop(
            shop_id=str(row.get("shop_id", "")),
            shop_name=str(row.get("shop_name") or ""),
            last_activity_at=last_activity,
            days_silent=days_silent,
        ))
    return shops


class SupabaseCheck(BaseCheck[SupabaseData]):
    """Checks database connectivity and collects shop activity metrics.

    An unreachable database is a successful check reporting DOWN; a
    reachable database whose metric queries fail is a failed check.
    """

    source = CheckSource.SUPABASE
    result_model = SupabaseResult

    def __init__(self, config: SupabaseConfig) -> None:
        super().__init__(timeout_secs=config.timeout_secs)
        self._config = config

    def empty_payload(self) -> SupabaseData:
        return SupabaseData()

    @property
    def _rest_url(self) -> str:
        return f"{self._config.url.rstrip('/')}/rest/v1"

    def _headers(self, count: bool = False) -> dict[str, str]:
        key = self._config.service_role_key.get_secret_value()
        headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
        }
        if count:
            headers["Prefer"] = "count=exact"
        return headers

    async def execute(self) -> SupabaseData:
        if not self._config.url or not self._config.service_role_key.get_secret_value():
            raise CheckConfigError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set")

        try:
            total_shops = await self._count(self._config.shops_table)
        except CheckConnectionError as exc:
            if not _is_unreachable(exc.__cause__):
                raise
            logger.warning("supabase_unreachable", error=str(exc))
            return SupabaseData(connection_status=HealthStatus.DOWN)

        since = (utcnow() - datetime.timedelta(hours=24)).isoformat()
        tickets = await self._count(self._config.tickets_table, created_after=since)
        ai_sessions = await self._count(
            self._config.ai_sessions_table, created_after=since,
        )

        active = await self._rpc(self._config.active_shops_rpc, {})
        if not isinstance(active, list):
            raise CheckParseError("active shops RPC did not return a list")

        silent_rows = await self._rpc(
            self._config.silent_shops_rpc,
            {"threshold_days": self._config.silent_threshold_days},
        )

        return SupabaseData(
            connection_status=HealthStatus.HEALTHY,
            total_shops=total_shops,
            active_shops_24h=len(active),
            tickets_created_24h=tickets,
            ai_sessions_24h=ai_sessions,
            silent_shops=_parse_silent_shops(silent_rows, utcnow()),
        )

    async def _count(self, table: str, created_after: str | None = None) -> int:
        params: dict[str, str] = {"select": "id", "limit": "1"}
        if created_after is not None:
            params["created_at"] = f"gt.{created_after}"
        _, response = await self._request_json(
            "GET",
            f"{self._rest_url}/{table}",
            label=f"Supabase {table} count",
            params=params,
            headers=self._headers(count=True),
        )
        return _parse_content_range(response.headers.get("content-range"))

    async def _rpc(self, name: str, args: dict[str, Any]) -> Any:
        body, _ = await self._request_json(
            "POST",
            f"{self._rest_url}/rpc/{name}",
            label=f"Supabase rpc {name}",
            json=args,
            headers=self._headers(),
        )
        return body


def _is_unreachable(cause: BaseException | None) -> bool:
    """True when the database itself did not answer (transport error or 5xx)."""
    if isinstance(cause, httpx.TransportError):
        return True
    if isinstance(cause, httpx.HTTPStatusError):
        return cause.response.status_code >= 500
    return False
