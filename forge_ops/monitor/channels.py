"""Notification channels — Slack webhook delivery."""

from __future__ import annotations

import abc

import aiohttp
import structlog

from forge_ops.core.config import SlackConfig

logger = structlog.get_logger(__name__)


class NotificationChannel(abc.ABC):
    """Base class for message delivery channels."""

    @abc.abstractmethod
    async def send(self, text: str) -> bool:
        """Send a rendered message. Returns True on success."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class SlackChannel(NotificationChannel):
    """Delivers messages via a Slack incoming webhook (mrkdwn text)."""

    def __init__(self, config: SlackConfig) -> None:
        self._webhook_url = config.webhook_url.get_secret_value()
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_secs)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def send(self, text: str) -> bool:
        if not self._webhook_url:
            logger.warning("slack_webhook_not_configured")
            return False

        try:
            session = self._get_session()
            async with session.post(self._webhook_url, json={"text": text}) as resp:
                if resp.status == 200:
                    return True
                body = await resp.text()
                logger.warning(
                    "slack_send_failed",
                    status=resp.status,
                    body=body[:200],
                )
                return False
        except Exception:
            logger.exception("slack_send_error")
            return False

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
