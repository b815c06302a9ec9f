"""Seams between the scheduler and the things it drives or polls.

Production wiring uses the Google/Qt implementations; tests swap in
deterministic fakes with the same shape.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol

from ..domain import CalendarEvent


class CalendarSource(Protocol):
    def fetch_today_events(self) -> Optional[List[CalendarEvent]]:
        """Return today's events, or ``None`` when the fetch failed."""


class BreakActuator(Protocol):
    @property
    def is_break_active(self) -> bool: ...

    def start_break(self) -> None: ...


class AuthStatus(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]: ...


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class TimerFactory(Protocol):
    def start(self, interval: float, callback: Callable[[], None], *, precise: bool = False) -> TimerHandle: ...


class TaskSubmitter(Protocol):
    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        **kwargs: Any,
    ) -> Any: ...


class BreakOverlay(Protocol):
    def show(self, total_seconds: int, on_dismiss: Callable[[], None]) -> None: ...

    def update(self, seconds_remaining: int, total_seconds: int) -> None: ...

    def hide(self) -> None: ...
