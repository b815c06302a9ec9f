from __future__ import annotations

import logging
import sys

from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

from ..bootstrap import configure_logging
from ..config import AppPalette, get_settings
from ..services import ServiceContext
from ..utils.qt import QtTimerFactory, TaskRunner
from .overlay import QtBreakOverlay
from .styles.theme import apply_palette
from .tray import TrayController

logger = logging.getLogger(__name__)


def run_gui() -> None:
    configure_logging()
    app = QApplication.instance() or QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)
    settings = get_settings()
    palette = AppPalette()
    apply_palette(app, palette)

    if not QSystemTrayIcon.isSystemTrayAvailable():
        logger.warning("No system tray available; the menu will not be visible")

    runner = TaskRunner()
    context = ServiceContext(
        timers=QtTimerFactory(),
        runner=runner,
        settings=settings,
        overlay=QtBreakOverlay(opacity=settings.ui.overlay_opacity),
    )
    tray = TrayController(context=context, runner=runner, palette=palette)
    tray.show()
    context.scheduler.start_scheduling()

    exit_code = app.exec()
    context.shutdown()
    sys.exit(exit_code)
