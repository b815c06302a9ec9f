from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx

from ..config import AppSettings, get_settings
from ..core import Preferences, PreferencesStore, TokenStore
from ..utils.dates import DateParser
from .auth import GoogleAuthService
from .breaks import BreakManager
from .calendar import GoogleCalendarSource
from .interfaces import BreakOverlay, TaskSubmitter, TimerFactory
from .scheduler import EventScheduler


@dataclass(slots=True)
class ServiceContext:
    """Aggregate root that builds and wires every collaborator explicitly."""

    timers: TimerFactory
    runner: TaskSubmitter
    settings: AppSettings = field(default_factory=get_settings)
    overlay: Optional[BreakOverlay] = None
    preferences: Optional[PreferencesStore] = None
    tokens: Optional[TokenStore] = None
    http: httpx.Client = field(init=False)
    parser: DateParser = field(init=False)
    auth: GoogleAuthService = field(init=False)
    calendar: GoogleCalendarSource = field(init=False)
    breaks: BreakManager = field(init=False)
    scheduler: EventScheduler = field(init=False)

    def __post_init__(self) -> None:
        if self.preferences is None:
            self.preferences = PreferencesStore(
                defaults=Preferences(
                    break_duration_seconds=self.settings.breaks.duration_seconds,
                    refresh_interval_minutes=self.settings.scheduler.refresh_interval_minutes,
                    tolerance_seconds=self.settings.scheduler.tolerance_seconds,
                )
            )
        if self.tokens is None:
            self.tokens = TokenStore()
        self.http = httpx.Client(timeout=self.settings.google.timeout_seconds)
        self.parser = DateParser(
            debug=self.settings.debug.enabled,
            max_debug_events=self.settings.debug.max_events_to_debug,
        )
        self.auth = GoogleAuthService(settings=self.settings.google, store=self.tokens, http_client=self.http)
        self.calendar = GoogleCalendarSource(
            settings=self.settings.google,
            token_provider=self.auth.ensure_fresh_token,
            http_client=self.http,
            parser=self.parser,
        )
        self.breaks = BreakManager(preferences=self.preferences, timers=self.timers, overlay=self.overlay)
        self.scheduler = EventScheduler(
            calendar=self.calendar,
            breaks=self.breaks,
            auth=self.auth,
            timers=self.timers,
            runner=self.runner,
            preferences=self.preferences,
            parser=self.parser,
            precision_interval=self.settings.scheduler.precision_interval_seconds,
            debug_timing_threshold=self.settings.scheduler.debug_timing_threshold_seconds,
        )

    def shutdown(self) -> None:
        self.scheduler.close()
        self.breaks.end_break()
        self.http.close()
