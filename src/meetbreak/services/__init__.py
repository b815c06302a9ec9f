"""Application services: calendar access, sign-in, breaks and scheduling."""

from __future__ import annotations

from .auth import GoogleAuthError, GoogleAuthService, GoogleNotConfiguredError
from .breaks import BreakManager
from .calendar import GoogleCalendarSource
from .context import ServiceContext
from .scheduler import EventScheduler, clamp_tolerance, select_next_event

__all__ = [
    "BreakManager",
    "EventScheduler",
    "GoogleAuthError",
    "GoogleAuthService",
    "GoogleCalendarSource",
    "GoogleNotConfiguredError",
    "ServiceContext",
    "clamp_tolerance",
    "select_next_event",
]
