from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QGuiApplication, QMouseEvent
from PyQt6.QtWidgets import QLabel, QVBoxLayout, QWidget


class OverlayWindow(QWidget):
    """Full-screen translucent countdown shown while a break runs."""

    def __init__(self, *, opacity: float = 0.6) -> None:
        super().__init__()
        self.setObjectName("breakOverlay")
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
        )
        self.setWindowOpacity(opacity)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.on_click: Optional[Callable[[], None]] = None

        layout = QVBoxLayout(self)
        layout.addStretch(1)

        self.countdown_label = QLabel("")
        self.countdown_label.setObjectName("overlayCountdown")
        self.countdown_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.countdown_label)

        caption = QLabel("Take a breath before the meeting. Click anywhere to skip.")
        caption.setObjectName("overlayCaption")
        caption.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(caption)

        layout.addStretch(1)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self.on_click is not None:
            self.on_click()
        event.accept()


class QtBreakOverlay:
    """Drives :class:`OverlayWindow` on behalf of the break manager."""

    def __init__(self, *, opacity: float = 0.6) -> None:
        self.window = OverlayWindow(opacity=opacity)

    def show(self, total_seconds: int, on_dismiss: Callable[[], None]) -> None:
        self.window.on_click = on_dismiss
        self.window.countdown_label.setText(str(total_seconds))
        screen = QGuiApplication.primaryScreen()
        if screen is not None:
            self.window.setGeometry(screen.geometry())
        self.window.showFullScreen()
        self.window.raise_()
        self.window.activateWindow()

    def update(self, seconds_remaining: int, total_seconds: int) -> None:
        self.window.countdown_label.setText(str(seconds_remaining))

    def hide(self) -> None:
        self.window.on_click = None
        self.window.hide()
