"""Runtime settings read from the environment.

Entrypoints call ``load_dotenv(override=False)`` first, so a local ``.env``
fills in anything the real environment leaves unset.

Variables
---------
DATABASE_URL                          SQLAlchemy URL of the document store.
OPENAI_API_KEY                        Enables organize; unset means "not configured".
FAMILY_LEDGER_OPENAI_MODEL            Responses API model (default ``gpt-4o``).
FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS  Classifier request timeout (default 60).
LINE_CHANNEL_ACCESS_TOKEN             Bearer token for the LINE reply endpoint.
LINE_API_TIMEOUT_SECONDS              Reply request timeout (default 10).
FAMILY_LEDGER_TIMEZONE                IANA zone for "today" (default ``Asia/Taipei``).
PORT                                  HTTP port for ``serve`` (default 8080).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .categorize import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS
from .periods import DEFAULT_TIMEZONE

DEFAULT_PORT = 8080
DEFAULT_LINE_TIMEOUT_SECONDS = 10.0


class SettingsError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str | None
    openai_api_key: str | None
    openai_model: str = DEFAULT_MODEL
    openai_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    line_channel_access_token: str | None = None
    line_timeout_seconds: float = DEFAULT_LINE_TIMEOUT_SECONDS
    timezone: str = DEFAULT_TIMEZONE
    port: int = DEFAULT_PORT

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def classifier_configured(self) -> bool:
        return bool(self.openai_api_key)


def _optional(env: Mapping[str, str], key: str) -> str | None:
    value = (env.get(key) or "").strip()
    return value or None


def _parse_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _optional(env, key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SettingsError(f"{key} must be numeric (received {raw!r})") from exc
    if value <= 0:
        raise SettingsError(f"{key} must be positive (received {raw!r})")
    return value


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _optional(env, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise SettingsError(f"{key} must be an integer (received {raw!r})") from exc


def _parse_timezone(env: Mapping[str, str], key: str) -> str:
    name = _optional(env, key) or DEFAULT_TIMEZONE
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise SettingsError(f"{key} is not a known timezone (received {name!r})") from exc
    return name


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    source = os.environ if env is None else env
    return Settings(
        database_url=_optional(source, "DATABASE_URL"),
        openai_api_key=_optional(source, "OPENAI_API_KEY"),
        openai_model=_optional(source, "FAMILY_LEDGER_OPENAI_MODEL") or DEFAULT_MODEL,
        openai_timeout_seconds=_parse_float(
            source, "FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
        ),
        line_channel_access_token=_optional(source, "LINE_CHANNEL_ACCESS_TOKEN"),
        line_timeout_seconds=_parse_float(
            source, "LINE_API_TIMEOUT_SECONDS", DEFAULT_LINE_TIMEOUT_SECONDS
        ),
        timezone=_parse_timezone(source, "FAMILY_LEDGER_TIMEZONE"),
        port=_parse_int(source, "PORT", DEFAULT_PORT),
    )


__all__ = ["Settings", "SettingsError", "load_settings"]
