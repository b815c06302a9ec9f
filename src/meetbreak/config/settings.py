from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"


@dataclass(frozen=True)
class GoogleSettings:
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_host: str
    redirect_port: int
    calendar_id: str
    api_base_url: str
    auth_url: str
    token_url: str
    scope: str
    timeout_seconds: float

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id)

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.client_id:
            missing.append("GOOGLE_CLIENT_ID")
        return missing


@dataclass(frozen=True)
class SchedulerSettings:
    refresh_interval_minutes: int
    tolerance_seconds: float
    precision_interval_seconds: float
    debug_timing_threshold_seconds: float


@dataclass(frozen=True)
class BreakSettings:
    duration_seconds: int


@dataclass(frozen=True)
class UiSettings:
    app_name: str
    overlay_opacity: float


@dataclass(frozen=True)
class DebugSettings:
    enabled: bool
    max_events_to_debug: int
    log_level: str


@dataclass(frozen=True)
class AppSettings:
    google: GoogleSettings
    scheduler: SchedulerSettings
    breaks: BreakSettings
    ui: UiSettings
    debug: DebugSettings


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _flag_from_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    google = GoogleSettings(
        client_id=os.getenv("GOOGLE_CLIENT_ID"),
        client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        redirect_host=os.getenv("GOOGLE_REDIRECT_HOST", "127.0.0.1"),
        redirect_port=_int_from_env("GOOGLE_REDIRECT_PORT", 52152),
        calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary"),
        api_base_url=os.getenv("GOOGLE_CALENDAR_API_BASE_URL", "https://www.googleapis.com/calendar/v3"),
        auth_url=os.getenv("GOOGLE_AUTH_URL", GOOGLE_AUTH_URL),
        token_url=os.getenv("GOOGLE_TOKEN_URL", GOOGLE_TOKEN_URL),
        scope=os.getenv("GOOGLE_CALENDAR_SCOPE", GOOGLE_CALENDAR_SCOPE),
        timeout_seconds=_float_from_env("GOOGLE_HTTP_TIMEOUT_SECONDS", 15.0),
    )

    scheduler = SchedulerSettings(
        refresh_interval_minutes=_int_from_env("MEETBREAK_REFRESH_MINUTES", 5),
        tolerance_seconds=_float_from_env("MEETBREAK_TOLERANCE_SECONDS", 0.5),
        precision_interval_seconds=_float_from_env("MEETBREAK_PRECISION_INTERVAL", 0.1),
        debug_timing_threshold_seconds=_float_from_env("MEETBREAK_DEBUG_TIMING_SECONDS", 10.0),
    )

    breaks = BreakSettings(duration_seconds=_int_from_env("MEETBREAK_BREAK_SECONDS", 10))

    ui = UiSettings(
        app_name=os.getenv("MEETBREAK_APP_NAME", "MeetBreak"),
        overlay_opacity=_float_from_env("MEETBREAK_OVERLAY_OPACITY", 0.6),
    )

    debug = DebugSettings(
        enabled=_flag_from_env("MEETBREAK_DEBUG"),
        max_events_to_debug=_int_from_env("MEETBREAK_DEBUG_MAX_EVENTS", 3),
        log_level=os.getenv("MEETBREAK_LOG_LEVEL", "INFO").upper(),
    )

    return AppSettings(google=google, scheduler=scheduler, breaks=breaks, ui=ui, debug=debug)
