"""Settings loaded from YAML configuration, the environment and ``.env``.

Each section is a ``pydantic_settings.BaseSettings`` whose externally named
variables (``SLACK_WEBHOOK_URL``, ``TIMEZONE``, ...) are declared as field
aliases. The remaining fields can be overridden with a per-section prefix,
e.g. ``FORGE_OPS_SCHEDULE_QUICK_INTERVAL_SECS``.

Precedence, highest first: environment, ``.env``, YAML, field defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")
_DEFAULT_ENV_FILE = ".env"


class ConfigError(ValueError):
    """One or more settings failed validation."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("invalid settings: " + "; ".join(problems))
        self.problems = problems


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class _Section(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init kwargs carry the YAML values; the environment overrides them.
        return env_settings, dotenv_settings, init_settings


class SlackConfig(_Section):
    """Slack incoming-webhook configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_SLACK_")

    webhook_url: SecretStr = Field(
        default=SecretStr(""), validation_alias="SLACK_WEBHOOK_URL",
    )
    timeout_secs: float = Field(default=10.0, gt=0)


class EndpointConfig(_Frozen):
    """A single URL probed by the uptime check."""

    name: str
    url: str


class UptimeConfig(_Section):
    """HTTP uptime check configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_UPTIME_")

    frontend_url: str = Field(default="", validation_alias="FRONTEND_URL")
    api_health_url: str = Field(default="", validation_alias="API_HEALTH_URL")
    extra_endpoints: list[EndpointConfig] = []
    timeout_secs: float = Field(default=20.0, gt=0)
    retry_delay_secs: float = Field(default=5.0, ge=0)

    def targets(self) -> list[EndpointConfig]:
        """Return every configured endpoint, skipping blank URLs."""
        endpoints = [
            EndpointConfig(name="Frontend", url=self.frontend_url),
            EndpointConfig(name="API", url=self.api_health_url),
            *self.extra_endpoints,
        ]
        return [e for e in endpoints if e.url]


class SupabaseConfig(_Section):
    """Supabase REST (PostgREST) configuration for shop activity queries."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_SUPABASE_")

    url: str = Field(default="", validation_alias="SUPABASE_URL")
    service_role_key: SecretStr = Field(
        default=SecretStr(""), validation_alias="SUPABASE_SERVICE_ROLE_KEY",
    )
    timeout_secs: float = Field(default=10.0, gt=0)
    silent_threshold_days: int = Field(
        default=3, ge=1, validation_alias="SILENT_SHOP_THRESHOLD_DAYS",
    )
    shops_table: str = "shops"
    tickets_table: str = "tickets"
    ai_sessions_table: str = "ai_sessions"
    active_shops_rpc: str = "get_active_shops_last_24h"
    silent_shops_rpc: str = "get_silent_shops"


class SentryConfig(_Section):
    """Sentry issue-tracker configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_SENTRY_")

    api_base: str = "https://sentry.io/api/0"
    web_base: str = "https://sentry.io"
    org: str = Field(default="", validation_alias="SENTRY_ORG")
    project: str = Field(default="", validation_alias="SENTRY_PROJECT")
    auth_token: SecretStr = Field(
        default=SecretStr(""), validation_alias="SENTRY_AUTH_TOKEN",
    )
    timeout_secs: float = Field(default=10.0, gt=0)
    issue_limit: int = Field(default=100, ge=1, le=100)
    recent_issue_count: int = Field(default=5, ge=0)


class RailwayConfig(_Section):
    """Railway deployment configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_RAILWAY_")

    graphql_url: str = "https://backboard.railway.app/graphql/v2"
    dashboard_base: str = "https://railway.app/project"
    api_token: SecretStr = Field(
        default=SecretStr(""), validation_alias="RAILWAY_API_TOKEN",
    )
    project_id: str = Field(default="", validation_alias="RAILWAY_PROJECT_ID")
    service_id: str = Field(default="", validation_alias="RAILWAY_SERVICE_ID")
    timeout_secs: float = Field(default=10.0, gt=0)


class EmailConfig(_Section):
    """Support inbox (IMAP) configuration. Optional."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_EMAIL_")

    imap_host: str = Field(default="", validation_alias="IMAP_HOST")
    imap_port: int = Field(default=993, gt=0, le=65535)
    imap_user: str = Field(default="", validation_alias="IMAP_USER")
    imap_pass: SecretStr = Field(default=SecretStr(""), validation_alias="IMAP_PASS")
    mailbox: str = "INBOX"
    timeout_secs: float = Field(default=15.0, gt=0)


class ScheduleConfig(_Section):
    """Cycle cadence configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_SCHEDULE_")

    timezone: str = Field(default="America/Detroit", validation_alias="TIMEZONE")
    briefing_hour: int = Field(
        default=8, ge=0, le=23, validation_alias="MORNING_BRIEFING_HOUR",
    )
    quick_interval_secs: float = Field(default=900.0, gt=0)
    check_guard_secs: float = Field(default=60.0, gt=0)
    tick_secs: float = Field(default=60.0, gt=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value


class LoggingConfig(_Section):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="FORGE_OPS_LOGGING_")

    level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    format: str = "json"


class Settings(_Frozen):
    """Root settings container."""

    slack: SlackConfig = Field(default_factory=SlackConfig)
    uptime: UptimeConfig = Field(default_factory=UptimeConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)
    railway: RailwayConfig = Field(default_factory=RailwayConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_SECTIONS: dict[str, type[_Section]] = {
    "slack": SlackConfig,
    "uptime": UptimeConfig,
    "supabase": SupabaseConfig,
    "sentry": SentryConfig,
    "railway": RailwayConfig,
    "email": EmailConfig,
    "schedule": ScheduleConfig,
    "logging": LoggingConfig,
}

REQUIRED_ENV: tuple[str, ...] = (
    "SLACK_WEBHOOK_URL",
    "FRONTEND_URL",
    "API_HEALTH_URL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SENTRY_AUTH_TOKEN",
    "SENTRY_ORG",
    "SENTRY_PROJECT",
    "RAILWAY_API_TOKEN",
    "RAILWAY_PROJECT_ID",
    "RAILWAY_SERVICE_ID",
)


def env_fields() -> dict[str, tuple[str, str]]:
    """Map each named environment variable to its (section, field)."""
    fields: dict[str, tuple[str, str]] = {}
    for section, cls in _SECTIONS.items():
        for name, info in cls.model_fields.items():
            if isinstance(info.validation_alias, str):
                fields[info.validation_alias] = (section, name)
    return fields


def missing_required(settings: Settings) -> list[str]:
    """Return the env var names of required settings that are empty."""
    fields = env_fields()
    missing: list[str] = []
    for env_key in REQUIRED_ENV:
        section, field = fields[env_key]
        value = getattr(getattr(settings, section), field)
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if not value:
            missing.append(env_key)
    return missing


def _problems(section: str, exc: ValidationError) -> list[str]:
    problems = []
    for error in exc.errors():
        key = ".".join(str(part) for part in error["loc"]) or section
        problems.append(f"{key} ({section}): {error['msg']}")
    return problems


def load_settings(
    path: str | Path | None = None,
    env_file: str | Path | None = _DEFAULT_ENV_FILE,
) -> Settings:
    """Load settings from YAML, ``.env`` and the environment and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.
        env_file: Dotenv file to read. None disables it.

    Returns:
        Parsed Settings instance.

    Raises:
        ConfigError: listing every invalid value across all sections.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    sections: dict[str, _Section] = {}
    problems: list[str] = []
    for name, cls in _SECTIONS.items():
        try:
            sections[name] = cls(_env_file=env_file, **(data.get(name) or {}))
        except ValidationError as exc:
            problems.extend(_problems(name, exc))
    if problems:
        raise ConfigError(problems)

    _settings = Settings(**sections)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
