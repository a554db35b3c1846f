"""Tests for the entrypoint — startup validation and single-cycle runs."""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from forge_ops.core.config import REQUIRED_ENV, env_fields, load_settings, reset_settings
from scripts.run import run, run_once, validate_settings

FULL_ENV = {
    "SLACK_WEBHOOK_URL": "https://hooks.slack.com/x",
    "FRONTEND_URL": "https://app.example.com",
    "API_HEALTH_URL": "https://api.example.com/health",
    "SUPABASE_URL": "https://db.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "key",
    "SENTRY_AUTH_TOKEN": "tok",
    "SENTRY_ORG": "forge",
    "SENTRY_PROJECT": "api",
    "RAILWAY_API_TOKEN": "rtok",
    "RAILWAY_PROJECT_ID": "p1",
    "RAILWAY_SERVICE_ID": "s1",
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_settings()
    for key in env_fields():
        monkeypatch.delenv(key, raising=False)


def _set_env(monkeypatch: pytest.MonkeyPatch, env: dict[str, str]) -> None:
    for key, value in env.items():
        monkeypatch.setenv(key, value)


def _args(config: Path, once: str | None = "full") -> argparse.Namespace:
    return argparse.Namespace(
        config=str(config), env_file=None, log_level="WARNING", once=once,
    )


class TestValidateSettings:
    def test_complete(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_env(monkeypatch, FULL_ENV)
        settings = load_settings(tmp_path / "missing.yaml", env_file=None)
        assert validate_settings(settings) is True

    def test_lists_every_missing_var(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        settings = load_settings(tmp_path / "missing.yaml", env_file=None)
        assert validate_settings(settings) is False
        err = capsys.readouterr().err
        for key in REQUIRED_ENV:
            assert key in err

    def test_only_missing_listed(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _set_env(monkeypatch, {k: v for k, v in FULL_ENV.items() if k != "SENTRY_ORG"})
        settings = load_settings(tmp_path / "missing.yaml", env_file=None)
        assert validate_settings(settings) is False
        err = capsys.readouterr().err
        assert "SENTRY_ORG" in err
        assert "SENTRY_PROJECT" not in err


class TestRun:
    async def test_missing_config_exits_nonzero(self, tmp_path: Path) -> None:
        with patch("scripts.run.create_monitor_stack") as factory:
            code = await run(_args(tmp_path / "missing.yaml"))
        assert code == 1
        factory.assert_not_called()

    async def test_unknown_timezone_exits_nonzero(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _set_env(monkeypatch, {**FULL_ENV, "TIMEZONE": "Mars/Olympus"})
        with patch("scripts.run.create_monitor_stack") as factory:
            code = await run(_args(tmp_path / "missing.yaml", once="quick"))
        assert code == 1
        factory.assert_not_called()
        err = capsys.readouterr().err
        assert "Invalid configuration values" in err
        assert "TIMEZONE" in err

    async def test_briefing_hour_out_of_range_exits_nonzero(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _set_env(monkeypatch, {**FULL_ENV, "MORNING_BRIEFING_HOUR": "25"})
        code = await run(_args(tmp_path / "missing.yaml"))
        assert code == 1
        assert "MORNING_BRIEFING_HOUR" in capsys.readouterr().err

    async def test_once_runs_cycle_and_closes(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        _set_env(monkeypatch, FULL_ENV)
        stack = MagicMock()
        stack.scheduler.run_full_now = AsyncMock(return_value=True)
        stack.close = AsyncMock()
        with patch("scripts.run.create_monitor_stack", return_value=stack):
            code = await run(_args(tmp_path / "missing.yaml", once="full"))
        assert code == 0
        stack.scheduler.run_full_now.assert_awaited_once()
        stack.close.assert_awaited_once()


class TestRunOnce:
    async def test_quick(self) -> None:
        stack = MagicMock()
        stack.scheduler.run_quick_now = AsyncMock(return_value=True)
        stack.scheduler.run_full_now = AsyncMock(return_value=True)
        await run_once(stack, "quick")
        stack.scheduler.run_quick_now.assert_awaited_once()
        stack.scheduler.run_full_now.assert_not_awaited()
