from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..core import PreferencesStore
from .interfaces import BreakOverlay, TimerFactory, TimerHandle

logger = logging.getLogger(__name__)

BreakListener = Callable[[bool], None]


class BreakManager:
    """Runs the break countdown and keeps the overlay in sync with it."""

    def __init__(
        self,
        *,
        preferences: PreferencesStore,
        timers: TimerFactory,
        overlay: Optional[BreakOverlay] = None,
    ) -> None:
        self.preferences = preferences
        self.timers = timers
        self.overlay = overlay
        self._countdown: Optional[TimerHandle] = None
        self._seconds_remaining = 0
        self._total_seconds = 0
        self._listeners: List[BreakListener] = []

    @property
    def is_break_active(self) -> bool:
        return self._countdown is not None

    @property
    def seconds_remaining(self) -> int:
        return self._seconds_remaining if self.is_break_active else 0

    def subscribe(self, listener: BreakListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start_break(self) -> None:
        if self.is_break_active:
            logger.debug("Break already running; ignoring start request")
            return

        self._total_seconds = max(1, int(self.preferences.break_duration_seconds))
        self._seconds_remaining = self._total_seconds
        logger.info("Break started (%d s)", self._total_seconds)
        if self.overlay is not None:
            self.overlay.show(self._total_seconds, self.end_break)
        self._countdown = self.timers.start(1.0, self._tick)
        self._notify(True)

    def end_break(self) -> None:
        if not self.is_break_active:
            return

        assert self._countdown is not None
        self._countdown.cancel()
        self._countdown = None
        self._seconds_remaining = 0
        if self.overlay is not None:
            self.overlay.hide()
        logger.info("Break finished")
        self._notify(False)

    def _tick(self) -> None:
        if not self.is_break_active:
            return
        if self._seconds_remaining > 1:
            self._seconds_remaining -= 1
            if self.overlay is not None:
                self.overlay.update(self._seconds_remaining, self._total_seconds)
        else:
            self.end_break()

    def _notify(self, active: bool) -> None:
        for listener in list(self._listeners):
            listener(active)
