"""Sentry check — new and unresolved error issues."""

from __future__ import annotations

import datetime

import httpx
import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.exceptions import CheckConfigError, CheckParseError
from forge_ops.core.config import SentryConfig
from forge_ops.core.types import (
    CheckSource,
    SentryData,
    SentryIssue,
    SentryResult,
    utcnow,
)

logger = structlog.stdlib.get_logger()

_LEVELS = ("fatal", "error", "warning")


def _parse_issue(raw: dict[str, object]) -> SentryIssue:
    level = str(raw.get("level") or "error")
    count_raw = raw.get("count", 0)
    try:
        count = int(count_raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        count = 0
    return SentryIssue(
        id=str(raw.get("id", "")),
        title=str(raw.get("title", "")),
        level=level if level in _LEVELS else "error",
        count=count,
        first_seen=str(raw.get("firstSeen", "")),
        last_seen=str(raw.get("lastSeen", "")),
        url=str(raw.get("permalink", "")),
    )


def _total_hits(response: httpx.Response, page: list[dict[str, object]]) -> int:
    """Total matches from X-Hits, or the page size when the header is absent."""
    try:
        return max(int(response.headers.get("X-Hits", "")), len(page))
    except ValueError:
        return len(page)


def issues_url(config: SentryConfig) -> str:
    """Link to the organisation's issue list."""
    return f"{config.web_base.rstrip('/')}/organizations/{config.org}/issues/"


class SentryCheck(BaseCheck[SentryData]):
    """Counts issues first seen in the last 24h and all unresolved issues."""

    source = CheckSource.SENTRY
    result_model = SentryResult

    def __init__(self, config: SentryConfig) -> None:
        super().__init__(timeout_secs=config.timeout_secs)
        self._config = config

    def empty_payload(self) -> SentryData:
        return SentryData()

    async def execute(self) -> SentryData:
        cfg = self._config
        if not (cfg.org and cfg.project and cfg.auth_token.get_secret_value()):
            raise CheckConfigError("SENTRY_ORG / SENTRY_PROJECT / SENTRY_AUTH_TOKEN not set")

        since = (utcnow() - datetime.timedelta(hours=24)).strftime("%Y-%m-%dT%H:%M:%S")
        _, new_count = await self._fetch_issues(f"firstSeen:>{since} is:unresolved")
        unresolved, unresolved_count = await self._fetch_issues("is:unresolved")

        if new_count:
            logger.info("sentry_new_issues", count=new_count)

        return SentryData(
            new_issue_count=new_count,
            unresolved_count=unresolved_count,
            recent_issues=[_parse_issue(i) for i in unresolved[: cfg.recent_issue_count]],
        )

    async def _fetch_issues(self, query: str) -> tuple[list[dict[str, object]], int]:
        """One page of issues plus the total number matching *query*."""
        cfg = self._config
        url = f"{cfg.api_base.rstrip('/')}/projects/{cfg.org}/{cfg.project}/issues/"
        body, response = await self._request_json(
            "GET",
            url,
            label="Sentry API",
            params={"query": query, "limit": str(cfg.issue_limit), "sort": "date"},
            headers={"Authorization": f"Bearer {cfg.auth_token.get_secret_value()}"},
        )
        if not isinstance(body, list):
            raise CheckParseError("Sentry API did not return an issue list")
        page = [i for i in body if isinstance(i, dict)]
        return page, _total_hits(response, page)
