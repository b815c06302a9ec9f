"""Domain models for meeting-aware breaks."""

from __future__ import annotations

from .models import CalendarEvent, OAuthTokens
from .enums import SchedulerState

__all__ = ["CalendarEvent", "OAuthTokens", "SchedulerState"]
