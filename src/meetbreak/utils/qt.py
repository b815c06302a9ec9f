from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Set

from PyQt6.QtCore import QObject, QRunnable, Qt, QThreadPool, QTimer, pyqtSignal

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


def _task_label(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class TaskSignals(QObject):
    completed = pyqtSignal(object)
    failed = pyqtSignal(Exception)
    finished = pyqtSignal()


class _Runnable(QRunnable):
    def __init__(
        self,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        signals: TaskSignals,
    ) -> None:
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = signals

    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:  # noqa: BLE001
            self.signals.failed.emit(exc)
        else:
            self.signals.completed.emit(result)
        finally:
            self.signals.finished.emit()


class TaskRunner:
    """Runs blocking calls (calendar fetches, the browser sign-in) off the GUI thread.

    ``on_success``/``on_error`` are delivered on the GUI thread through queued
    signals. A task submitted without ``on_error`` still has its failure
    logged. Signal objects of running tasks are kept alive until they finish.
    """

    def __init__(self, *, max_threads: Optional[int] = None) -> None:
        self.pool = QThreadPool.globalInstance()
        if max_threads is not None:
            self.pool.setMaxThreadCount(max_threads)
        self._in_flight: Set[TaskSignals] = set()

    @property
    def pending(self) -> int:
        return len(self._in_flight)

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        **kwargs: Any,
    ) -> TaskSignals:
        label = _task_label(fn)
        signals = TaskSignals()
        if on_success:
            signals.completed.connect(on_success)
        if on_error:
            signals.failed.connect(on_error)
        else:
            signals.failed.connect(lambda exc: logger.error("Background task %s failed: %s", label, exc))
        self._in_flight.add(signals)
        signals.finished.connect(lambda: self._in_flight.discard(signals))
        logger.debug("Submitting background task %s", label)
        self.pool.start(_Runnable(fn, args, kwargs, signals))
        return signals


class QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class QtTimerFactory:
    """Repeating timers bound to the thread that owns the Qt event loop."""

    def start(self, interval: float, callback: Callable[[], None], *, precise: bool = False) -> QtTimerHandle:
        timer = QTimer()
        timer.setInterval(max(1, int(round(interval * 1000))))
        if precise:
            timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.timeout.connect(callback)
        timer.start()
        return QtTimerHandle(timer)
