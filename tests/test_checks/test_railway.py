"""Tests for RailwayCheck — status mapping, GraphQL parsing, failures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from pydantic import SecretStr

from forge_ops.checks.railway import RailwayCheck, dashboard_url, deployment_health
from forge_ops.core.config import RailwayConfig
from forge_ops.core.types import CheckSource, HealthStatus

GRAPHQL = "https://backboard.railway.app/graphql/v2"


def _cfg(**overrides: object) -> RailwayConfig:
    defaults: dict[str, object] = {
        "api_token": SecretStr("railway-token"),
        "project_id": "proj-1",
        "service_id": "svc-1",
    }
    defaults.update(overrides)
    return RailwayConfig(**defaults)  # type: ignore[arg-type]


def _body(status: str | None = "SUCCESS") -> dict[str, object]:
    edges = []
    if status is not None:
        edges.append({"node": {"id": "d1", "status": status, "createdAt": "2026-03-10T08:00:00Z"}})
    return {"data": {"deployments": {"edges": edges}}}


def _resp(body: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=body,
        request=httpx.Request("POST", GRAPHQL),
    )


def _with_client(check: RailwayCheck, request: AsyncMock) -> AsyncMock:
    client = MagicMock()
    client.is_closed = False
    client.request = request
    check._http = client
    return request


class TestDeploymentHealth:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("SUCCESS", HealthStatus.HEALTHY),
            ("FAILED", HealthStatus.DOWN),
            ("CRASHED", HealthStatus.DOWN),
            ("REMOVED", HealthStatus.DOWN),
            ("BUILDING", HealthStatus.DEGRADED),
            ("DEPLOYING", HealthStatus.DEGRADED),
            (None, HealthStatus.UNKNOWN),
        ],
    )
    def test_mapping(self, status: str | None, expected: HealthStatus) -> None:
        assert deployment_health(status) == expected


class TestDashboardUrl:
    def test_service_link(self) -> None:
        assert dashboard_url(_cfg()) == "https://railway.app/project/proj-1/service/svc-1"


class TestRun:
    async def test_success_deployment(self) -> None:
        check = RailwayCheck(_cfg())
        request = _with_client(check, AsyncMock(return_value=_resp(_body("SUCCESS"))))
        result = await check.run()
        assert result.ok is True
        assert result.source == CheckSource.RAILWAY
        assert result.payload.status == HealthStatus.HEALTHY
        assert result.payload.latest_deployment_status == "SUCCESS"
        assert result.payload.latest_deployment_at == "2026-03-10T08:00:00Z"

        call = request.await_args
        assert call.kwargs["json"]["variables"] == {"projectId": "proj-1", "serviceId": "svc-1"}
        assert call.kwargs["headers"]["Authorization"] == "Bearer railway-token"

    async def test_crashed_deployment_is_down(self) -> None:
        check = RailwayCheck(_cfg())
        _with_client(check, AsyncMock(return_value=_resp(_body("CRASHED"))))
        result = await check.run()
        assert result.ok is True
        assert result.payload.status == HealthStatus.DOWN

    async def test_no_deployments_is_unknown(self) -> None:
        check = RailwayCheck(_cfg())
        _with_client(check, AsyncMock(return_value=_resp(_body(None))))
        result = await check.run()
        assert result.ok is True
        assert result.payload.status == HealthStatus.UNKNOWN
        assert result.payload.latest_deployment_status is None

    async def test_graphql_errors_are_failure(self) -> None:
        check = RailwayCheck(_cfg())
        _with_client(check, AsyncMock(return_value=_resp({"errors": [{"message": "Not Authorized"}]})))
        result = await check.run()
        assert result.ok is False
        assert "Not Authorized" in (result.failure_reason or "")
        assert result.payload.status == HealthStatus.UNKNOWN

    async def test_api_unreachable_is_failure(self) -> None:
        check = RailwayCheck(_cfg())
        _with_client(check, AsyncMock(side_effect=httpx.ConnectTimeout("timed out")))
        result = await check.run()
        assert result.ok is False
        assert result.payload.status == HealthStatus.UNKNOWN

    async def test_malformed_body_is_failure(self) -> None:
        check = RailwayCheck(_cfg())
        _with_client(check, AsyncMock(return_value=_resp({"data": None})))
        result = await check.run()
        assert result.ok is False

    async def test_missing_config_is_failure(self) -> None:
        result = await RailwayCheck(_cfg(service_id="")).run()
        assert result.ok is False
        assert "RAILWAY_SERVICE_ID" in (result.failure_reason or "")
