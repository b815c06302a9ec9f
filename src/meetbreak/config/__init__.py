"""Configuration models and helpers."""

from __future__ import annotations

from .settings import (
    AppSettings,
    BreakSettings,
    DebugSettings,
    GoogleSettings,
    SchedulerSettings,
    UiSettings,
    get_settings,
)
from .theme import AppPalette

__all__ = [
    "AppPalette",
    "AppSettings",
    "BreakSettings",
    "DebugSettings",
    "GoogleSettings",
    "SchedulerSettings",
    "UiSettings",
    "get_settings",
]
