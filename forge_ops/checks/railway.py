"""Railway check — latest deployment status of the backend service."""

from __future__ import annotations

import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.exceptions import CheckConfigError, CheckParseError
from forge_ops.core.config import RailwayConfig
from forge_ops.core.types import CheckSource, HealthStatus, RailwayData, RailwayResult

logger = structlog.stdlib.get_logger()

_DEPLOYMENTS_QUERY = """
query LatestDeployment($projectId: String!, $serviceId: String!) {
  deployments(input: { projectId: $projectId, serviceId: $serviceId }, first: 1) {
    edges {
      node {
        id
        status
        createdAt
      }
    }
  }
}
"""

# Railway DeploymentStatus → health. Unlisted statuses are in progress.
_STATUS_HEALTH: dict[str, HealthStatus] = {
    "SUCCESS": HealthStatus.HEALTHY,
    "SLEEPING": HealthStatus.HEALTHY,
    "FAILED": HealthStatus.DOWN,
    "CRASHED": HealthStatus.DOWN,
    "REMOVED": HealthStatus.DOWN,
}


def deployment_health(status: str | None) -> HealthStatus:
    """Map a Railway deployment status to a health classification."""
    if not status:
        return HealthStatus.UNKNOWN
    return _STATUS_HEALTH.get(status.upper(), HealthStatus.DEGRADED)


def dashboard_url(config: RailwayConfig) -> str:
    """Link to the service in the Railway dashboard."""
    base = f"{config.dashboard_base.rstrip('/')}/{config.project_id}"
    if config.service_id:
        return f"{base}/service/{config.service_id}"
    return base


class RailwayCheck(BaseCheck[RailwayData]):
    """Reads the most recent deployment via the Railway GraphQL API."""

    source = CheckSource.RAILWAY
    result_model = RailwayResult

    def __init__(self, config: RailwayConfig) -> None:
        super().__init__(timeout_secs=config.timeout_secs)
        self._config = config

    def empty_payload(self) -> RailwayData:
        return RailwayData()

    async def execute(self) -> RailwayData:
        cfg = self._config
        if not (cfg.api_token.get_secret_value() and cfg.project_id and cfg.service_id):
            raise CheckConfigError(
                "RAILWAY_API_TOKEN / RAILWAY_PROJECT_ID / RAILWAY_SERVICE_ID not set"
            )

        body, _ = await self._request_json(
            "POST",
            cfg.graphql_url,
            label="Railway API",
            json={
                "query": _DEPLOYMENTS_QUERY,
                "variables": {"projectId": cfg.project_id, "serviceId": cfg.service_id},
            },
            headers={"Authorization": f"Bearer {cfg.api_token.get_secret_value()}"},
        )
        if not isinstance(body, dict):
            raise CheckParseError("Railway API returned a non-object body")

        errors = body.get("errors")
        if errors:
            messages = ", ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e)
                for e in errors
            )
            raise CheckParseError(f"GraphQL error: {messages}")

        node = _latest_node(body)
        if node is None:
            logger.info("railway_no_deployments", service_id=cfg.service_id)
            return RailwayData()

        status = node.get("status")
        status_str = str(status) if status else None
        created_at = node.get("createdAt")
        return RailwayData(
            status=deployment_health(status_str),
            latest_deployment_status=status_str,
            latest_deployment_at=str(created_at) if created_at else None,
        )


def _latest_node(body: dict[str, object]) -> dict[str, object] | None:
    data = body.get("data")
    if not isinstance(data, dict):
        raise CheckParseError("Railway response missing 'data'")
    deployments = data.get("deployments")
    if not isinstance(deployments, dict):
        raise CheckParseError("Railway response missing 'deployments'")
    edges = deployments.get("edges")
    if not isinstance(edges, list) or not edges:
        return None
    first = edges[0]
    node = first.get("node") if isinstance(first, dict) else None
    return node if isinstance(node, dict) else None
