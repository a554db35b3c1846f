"""Support inbox check — unread message count over IMAP."""

from __future__ import annotations

import asyncio
import imaplib
import time

import structlog

from forge_ops.checks.base import BaseCheck
from forge_ops.checks.exceptions import (
    CheckConfigError,
    CheckConnectionError,
    CheckParseError,
)
from forge_ops.core.config import EmailConfig
from forge_ops.core.types import CheckSource, EmailData, EmailResult, HealthStatus, utcnow

logger = structlog.stdlib.get_logger()

_LOGOUT_TIMEOUT_SECS = 1.0


class InboxCheck(BaseCheck[EmailData]):
    """Counts UNSEEN messages in the support mailbox.

    imaplib is blocking, so the session runs in a worker thread. The whole
    session shares one time budget so the thread ends even when the caller
    has stopped waiting for it.

    Args:
        config: Inbox settings.
        max_session_secs: Upper bound on the session budget, normally the
            fan-out guard.
    """

    source = CheckSource.EMAIL
    result_model = EmailResult

    def __init__(
        self,
        config: EmailConfig,
        max_session_secs: float | None = None,
    ) -> None:
        budget = config.timeout_secs
        if max_session_secs is not None:
            budget = min(budget, max_session_secs)
        super().__init__(timeout_secs=budget)
        self._config = config

    def empty_payload(self) -> EmailData:
        return EmailData()

    def _missing(self) -> list[str]:
        missing = []
        if not self._config.imap_host:
            missing.append("IMAP_HOST")
        if not self._config.imap_user:
            missing.append("IMAP_USER")
        if not self._config.imap_pass.get_secret_value():
            missing.append("IMAP_PASS")
        return missing

    async def execute(self) -> EmailData:
        missing = self._missing()
        if missing:
            raise CheckConfigError(
                f"Email configuration not provided. Set {', '.join(missing)}."
            )

        unread = await asyncio.to_thread(self._count_unread)
        return EmailData(
            status=HealthStatus.HEALTHY,
            unread_count=unread,
            last_check_at=utcnow(),
        )

    def _count_unread(self) -> int:
        cfg = self._config
        deadline = time.monotonic() + self._timeout_secs
        try:
            conn = imaplib.IMAP4_SSL(
                cfg.imap_host, cfg.imap_port, timeout=self._timeout_secs,
            )
        except OSError as exc:
            raise CheckConnectionError(f"IMAP connect failed: {exc}") from exc

        def _within_budget() -> None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CheckConnectionError(
                    f"IMAP session exceeded {self._timeout_secs:g}s"
                )
            conn.sock.settimeout(remaining)

        try:
            _within_budget()
            conn.login(cfg.imap_user, cfg.imap_pass.get_secret_value())
            _within_budget()
            status, _ = conn.select(cfg.mailbox, readonly=True)
            if status != "OK":
                raise CheckParseError(f"cannot open mailbox {cfg.mailbox!r}")
            _within_budget()
            status, data = conn.search(None, "UNSEEN")
            if status != "OK":
                raise CheckParseError("IMAP search UNSEEN failed")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise CheckConnectionError(f"IMAP session failed: {exc}") from exc
        finally:
            try:
                conn.sock.settimeout(_LOGOUT_TIMEOUT_SECS)
                conn.logout()
            except (imaplib.IMAP4.error, OSError):
                logger.debug("imap_logout_failed", host=cfg.imap_host)

        ids = data[0].split() if data and data[0] else []
        return len(ids)
