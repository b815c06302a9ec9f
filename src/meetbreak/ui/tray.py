from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, QPointF, QRectF, Qt
from PyQt6.QtGui import QAction, QColor, QIcon, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from ..config import AppPalette
from ..services import GoogleAuthError, ServiceContext
from ..utils.dates import clock_label, event_time_range
from ..utils.qt import TaskRunner
from .settings_dialog import SettingsDialog

logger = logging.getLogger(__name__)


def _tray_icon(palette: AppPalette, size: int = 32) -> QIcon:
    pix = QPixmap(size, size)
    pix.fill(Qt.GlobalColor.transparent)
    painter = QPainter(pix)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    thickness = max(2, size // 10)
    pen = QPen(QColor(palette.accent_primary))
    pen.setWidth(thickness)
    painter.setPen(pen)
    rect = QRectF(thickness, thickness, size - thickness * 2, size - thickness * 2)
    painter.drawEllipse(rect)
    center = rect.center()
    bar = rect.height() * 0.18
    for offset in (-bar, bar):
        painter.drawLine(
            QPointF(center.x() + offset, center.y() - rect.height() * 0.22),
            QPointF(center.x() + offset, center.y() + rect.height() * 0.22),
        )
    painter.end()
    return QIcon(pix)


class TrayController(QObject):
    """System tray menu: status, upcoming meetings and account actions."""

    def __init__(self, *, context: ServiceContext, runner: TaskRunner, palette: AppPalette) -> None:
        super().__init__()
        self.context = context
        self.runner = runner
        self.menu = QMenu()
        self.tray = QSystemTrayIcon(_tray_icon(palette))
        self.tray.setToolTip(context.settings.ui.app_name)
        self.tray.setContextMenu(self.menu)

        context.scheduler.subscribe(lambda _scheduler: self._rebuild_menu())
        context.auth.subscribe(lambda _authenticated: self._rebuild_menu())
        context.breaks.subscribe(lambda _active: self._rebuild_menu())
        self._signing_in = False
        self._rebuild_menu()

    def show(self) -> None:
        self.tray.show()

    # ------------------------------------------------------------------ menu

    def _status_text(self) -> str:
        scheduler = self.context.scheduler
        if not self.context.auth.is_authenticated:
            return "Not connected to Google Calendar"
        if self.context.breaks.is_break_active:
            return f"On a break ({self.context.breaks.seconds_remaining}s left)"
        upcoming = scheduler.next_event or scheduler.find_next_event()
        if upcoming is not None and upcoming.starts_at is not None:
            return f"Next: {upcoming.display_title} at {clock_label(upcoming.starts_at)}"
        if scheduler.last_sync_at is not None:
            return f"No more meetings today (synced {clock_label(scheduler.last_sync_at)})"
        return "Syncing calendar…"

    def _rebuild_menu(self) -> None:
        self.menu.clear()
        status = QAction(self._status_text(), self.menu)
        status.setEnabled(False)
        self.menu.addAction(status)
        self.menu.addSeparator()

        take_break = self.menu.addAction("Take a break now")
        take_break.setEnabled(not self.context.breaks.is_break_active)
        take_break.triggered.connect(self.context.breaks.start_break)

        events_menu = self.menu.addMenu("Today's events")
        events = self.context.scheduler.future_events
        if not events:
            placeholder = events_menu.addAction("No events")
            placeholder.setEnabled(False)
        events_menu.setToolTipsVisible(True)
        for event in events:
            marker = " (video)" if event.conference_link else ""
            item = events_menu.addAction(f"{event_time_range(event)}  {event.display_title}{marker}")
            if event.description:
                item.setToolTip(event.description.strip()[:300])
            item.setEnabled(False)

        if self.context.auth.is_authenticated:
            refresh = self.menu.addAction("Refresh now")
            refresh.setEnabled(self.context.scheduler.is_active)
            refresh.triggered.connect(self.context.scheduler.refresh_now)

        settings = self.menu.addAction("Settings…")
        settings.triggered.connect(self._open_settings)
        self.menu.addSeparator()

        if self.context.auth.is_authenticated:
            sign_out = self.menu.addAction("Sign out")
            sign_out.triggered.connect(self.context.auth.sign_out)
        else:
            connect = self.menu.addAction("Connecting…" if self._signing_in else "Connect Google Calendar")
            connect.setEnabled(not self._signing_in)
            connect.triggered.connect(self._sign_in)

        quit_action = self.menu.addAction("Quit")
        quit_action.triggered.connect(QApplication.quit)

    # ------------------------------------------------------------------ slots

    def _open_settings(self) -> None:
        assert self.context.preferences is not None
        dialog = SettingsDialog(preferences=self.context.preferences.current)
        if dialog.exec() != SettingsDialog.DialogCode.Accepted:
            return
        self.context.preferences.update(**dialog.values())

    def _sign_in(self) -> None:
        self._signing_in = True
        self._rebuild_menu()

        def done(tokens: Any) -> None:
            self._signing_in = False
            self.context.auth.complete_sign_in(tokens)

        def fail(exc: Exception) -> None:
            self._signing_in = False
            logger.error("Google sign-in failed: %s", exc)
            message = str(exc) if isinstance(exc, GoogleAuthError) else "Sign-in failed. See the log for details."
            self.tray.showMessage("Google Calendar", message, QSystemTrayIcon.MessageIcon.Warning)
            self._rebuild_menu()

        self.runner.submit(self.context.auth.authorize_interactively, on_success=done, on_error=fail)
