from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import AbstractSet, Any, Callable, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..core import PreferencesStore
from ..domain import CalendarEvent, SchedulerState
from ..utils.dates import DEFAULT_PARSER, DateParser
from .interfaces import AuthStatus, BreakActuator, CalendarSource, TaskSubmitter, TimerFactory, TimerHandle

logger = logging.getLogger(__name__)

MIN_TOLERANCE_SECONDS = 0.1
MAX_TOLERANCE_SECONDS = 2.0
DEFAULT_PRECISION_INTERVAL = 0.1
DEFAULT_DEBUG_TIMING_THRESHOLD = 10.0

SchedulerListener = Callable[["EventScheduler"], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_tolerance(seconds: float) -> float:
    return max(MIN_TOLERANCE_SECONDS, min(MAX_TOLERANCE_SECONDS, float(seconds)))


def select_next_event(
    events: Iterable[CalendarEvent],
    now: datetime,
    triggered_ids: AbstractSet[str] = frozenset(),
) -> Optional[CalendarEvent]:
    """Earliest future video meeting that has not fired yet.

    Events without a start time or a conference link never qualify. Ties keep
    the order in which the calendar returned them.
    """

    candidates = [
        event
        for event in events
        if event.is_trigger_eligible
        and event.starts_at > now  # type: ignore[operator]
        and event.id not in triggered_ids
    ]
    if not candidates:
        return None
    return sorted(candidates, key=lambda event: event.starts_at)[0]


class EventScheduler:
    """Fires a break when the next video meeting of the day starts.

    Two repeating timers drive it: a coarse refresh loop that re-pulls today's
    events through the worker runner, and a fast precision loop that compares
    the next meeting's start with the clock. Both run their callbacks on the
    same thread, so the working set (``future_events``, ``triggered_ids``,
    ``next_event``) is never mutated concurrently. Fetch results carry the
    generation they were requested under and are dropped once the scheduler
    was stopped or restarted in the meantime.
    """

    def __init__(
        self,
        *,
        calendar: CalendarSource,
        breaks: BreakActuator,
        auth: AuthStatus,
        timers: TimerFactory,
        runner: TaskSubmitter,
        preferences: PreferencesStore,
        parser: DateParser = DEFAULT_PARSER,
        clock: Callable[[], datetime] = _utcnow,
        precision_interval: float = DEFAULT_PRECISION_INTERVAL,
        debug_timing_threshold: float = DEFAULT_DEBUG_TIMING_THRESHOLD,
    ) -> None:
        self.calendar = calendar
        self.breaks = breaks
        self.auth = auth
        self.timers = timers
        self.runner = runner
        self.preferences = preferences
        self.parser = parser
        self.clock = clock
        self.debug_timing_threshold = debug_timing_threshold

        self._future_events: Tuple[CalendarEvent, ...] = ()
        self._triggered_ids: Set[str] = set()
        self._next_event: Optional[CalendarEvent] = None
        self._refresh_timer: Optional[TimerHandle] = None
        self._precision_timer: Optional[TimerHandle] = None
        self._active = False
        self._generation = 0
        self._has_synced = False
        self._last_sync_at: Optional[datetime] = None
        self._tolerance = clamp_tolerance(preferences.tolerance_seconds)
        self._requested_precision_interval = precision_interval
        self._warn_if_interval_capped()
        self._listeners: List[SchedulerListener] = []
        self._unsubscribers = [
            auth.subscribe(self._on_auth_changed),
            preferences.subscribe(self._on_preference_changed),
        ]

    # ------------------------------------------------------------------ state

    @property
    def future_events(self) -> Tuple[CalendarEvent, ...]:
        return self._future_events

    @property
    def next_event(self) -> Optional[CalendarEvent]:
        return self._next_event

    @property
    def triggered_ids(self) -> FrozenSet[str]:
        return frozenset(self._triggered_ids)

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def precision_interval(self) -> float:
        """Tick period actually used; never longer than the tolerance window."""

        return min(self._requested_precision_interval, 2 * self._tolerance)

    @property
    def last_sync_at(self) -> Optional[datetime]:
        return self._last_sync_at

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def precision_loop_running(self) -> bool:
        return self._precision_timer is not None

    @property
    def refresh_loop_running(self) -> bool:
        return self._refresh_timer is not None

    @property
    def state(self) -> SchedulerState:
        if not self._active:
            return SchedulerState.IDLE
        if self._precision_timer is not None:
            return SchedulerState.WAITING
        if self._has_synced:
            return SchedulerState.STANDBY
        return SchedulerState.ACTIVE

    def subscribe(self, listener: SchedulerListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------ public API

    def start_scheduling(self) -> None:
        if self._active:
            logger.debug("Scheduling already active")
            return
        if not self.auth.is_authenticated:
            logger.info("Not signed in to Google Calendar; scheduling stays idle")
            return

        self._active = True
        self._generation += 1
        self._arm_refresh_loop(self.preferences.refresh_interval_minutes)
        self.refresh_now()
        self._notify()

    def stop_scheduling(self) -> None:
        had_state = self._active or bool(self._future_events) or self._refresh_timer is not None
        self._active = False
        self._generation += 1
        self._cancel_refresh_loop()
        self._stop_precision_loop()
        self._future_events = ()
        self._triggered_ids = set()
        self._next_event = None
        self._has_synced = False
        if had_state:
            logger.info("Scheduling stopped")
            self._notify()

    def adjust_tolerance(self, seconds: float) -> None:
        previous_interval = self.precision_interval
        self._tolerance = clamp_tolerance(seconds)
        logger.info("Timing tolerance adjusted to ±%.1fs", self._tolerance)
        self._warn_if_interval_capped()
        if self._precision_timer is not None and self.precision_interval != previous_interval:
            self._precision_timer.cancel()
            self._precision_timer = self.timers.start(
                self.precision_interval, self._check_next_event_timing, precise=True
            )

    def refresh_now(self) -> None:
        if not self._active:
            return
        generation = self._generation
        self.runner.submit(
            self.calendar.fetch_today_events,
            on_success=partial(self._handle_fetch_result, generation),
            on_error=partial(self._handle_fetch_error, generation),
        )

    def ingest(self, events: Iterable[CalendarEvent]) -> None:
        """Replace the working set with a fresh snapshot of today's events."""

        snapshot = tuple(events)
        self._future_events = snapshot
        self._triggered_ids = set()
        self._next_event = None
        self._has_synced = True
        self._last_sync_at = self.clock()

        logger.info("Events loaded: %d", len(snapshot))
        for event in snapshot:
            logger.debug("• %s", event.display_title)
        self.parser.describe_events(snapshot, now=self._last_sync_at)

        if self._active:
            self._start_precision_loop()
        self._log_upcoming()
        self._notify()

    def find_next_event(self, now: Optional[datetime] = None) -> Optional[CalendarEvent]:
        return select_next_event(self._future_events, now or self.clock(), self._triggered_ids)

    def close(self) -> None:
        self.stop_scheduling()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._listeners.clear()

    # ------------------------------------------------------------------ refresh loop

    def _arm_refresh_loop(self, interval_minutes: int) -> None:
        self._cancel_refresh_loop()
        minutes = max(1, int(interval_minutes))
        logger.info("Refreshing events every %d min", minutes)
        self._refresh_timer = self.timers.start(minutes * 60.0, self.refresh_now)

    def _cancel_refresh_loop(self) -> None:
        if self._refresh_timer is not None:
            self._refresh_timer.cancel()
            self._refresh_timer = None

    def _handle_fetch_result(self, generation: int, events: Optional[List[CalendarEvent]]) -> None:
        if generation != self._generation or not self._active:
            logger.debug("Discarding calendar result from a previous session")
            return
        if events is None:
            logger.warning("Event refresh failed; keeping %d previously loaded event(s)", len(self._future_events))
            return
        self.ingest(events)

    def _handle_fetch_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation or not self._active:
            return
        logger.error("Event refresh raised %s: %s", type(exc).__name__, exc)

    # ------------------------------------------------------------------ precision loop

    def _start_precision_loop(self) -> None:
        if self._precision_timer is not None:
            self._precision_timer.cancel()
            self._precision_timer = None
        if not self._future_events:
            logger.debug("No future events, precision loop paused")
            return
        logger.debug("Precision loop started (every %ss)", self.precision_interval)
        self._precision_timer = self.timers.start(self.precision_interval, self._check_next_event_timing, precise=True)
        self._check_next_event_timing()

    def _stop_precision_loop(self) -> None:
        if self._precision_timer is not None:
            self._precision_timer.cancel()
            self._precision_timer = None
            logger.debug("Precision loop stopped")
        self._next_event = None

    def _warn_if_interval_capped(self) -> None:
        if self._requested_precision_interval > self.precision_interval:
            logger.warning(
                "Precision interval %.2fs exceeds the ±%.1fs window; ticking every %.2fs instead",
                self._requested_precision_interval,
                self._tolerance,
                self.precision_interval,
            )

    def _has_passed(self, event: CalendarEvent, now: datetime) -> bool:
        if event.starts_at is None:
            return True
        return (event.starts_at - now).total_seconds() < -self._tolerance

    def _check_next_event_timing(self) -> None:
        if not self._active:
            return
        if self.breaks.is_break_active:
            return

        now = self.clock()
        if self._next_event is None or self._has_passed(self._next_event, now):
            self._next_event = self.find_next_event(now)

        event = self._next_event
        if event is None or event.starts_at is None:
            self._stop_precision_loop()
            return

        delta = (event.starts_at - now).total_seconds()
        self._log_timing(event, now, delta)

        if -self._tolerance <= delta <= self._tolerance:
            logger.info("Activating break for %r (%+.1fs from start)", event.summary or "-", -delta)
            self._triggered_ids.add(event.id)
            self.breaks.start_break()
            self._next_event = None
            self._notify()

    # ------------------------------------------------------------------ diagnostics

    def _log_timing(self, event: CalendarEvent, now: datetime, delta: float) -> None:
        if delta > self.debug_timing_threshold or int(delta * 10) % 10 != 0:
            return
        assert event.starts_at is not None
        logger.debug(
            "Timing: now %s, event %s, difference %.1fs",
            now.astimezone().strftime("%H:%M:%S.%f")[:-3],
            event.starts_at.astimezone().strftime("%H:%M:%S.%f")[:-3],
            delta,
        )

    def _log_upcoming(self) -> None:
        if not self._future_events:
            logger.info("No pending events")
            return
        now = self.clock()
        upcoming = self.find_next_event(now)
        if upcoming is None or upcoming.starts_at is None:
            logger.info("No more video meetings today")
            return
        minutes = int((upcoming.starts_at - now).total_seconds() // 60)
        logger.info("Next meeting: %r in %d minutes", upcoming.display_title, minutes)

    # ------------------------------------------------------------------ collaborators

    def _on_auth_changed(self, authenticated: bool) -> None:
        if authenticated:
            self.start_scheduling()
        else:
            self.stop_scheduling()

    def _on_preference_changed(self, name: str, value: Any) -> None:
        if name == "tolerance_seconds":
            self.adjust_tolerance(float(value))
        elif name == "refresh_interval_minutes" and self._active:
            self._arm_refresh_loop(int(value))
