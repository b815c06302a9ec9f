from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AppPalette:
    background_primary: str = "#030712"
    surface: str = "#0c162c"
    accent_primary: str = "#7dd3fc"
    accent_secondary: str = "#f472b6"
    text_primary: str = "#f8fafc"
    text_secondary: str = "#c7d2fe"
    border_subtle: str = "#1e293b"
    overlay_background: str = "#000000"

    def as_stylesheet(self) -> str:
        """Stylesheet shared by the settings dialog and the overlay."""

        return f"""
        QWidget {{
            background-color: {self.background_primary};
            color: {self.text_primary};
            font-family: 'Helvetica Neue', 'Segoe UI', Arial, sans-serif;
            font-size: 14px;
        }}
        QPushButton {{
            background-color: {self.accent_primary};
            color: #031525;
            border: none;
            padding: 8px 14px;
            border-radius: 8px;
            font-weight: 600;
        }}
        QPushButton:disabled {{
            background-color: {self.border_subtle};
            color: {self.text_secondary};
        }}
        QSpinBox, QDoubleSpinBox {{
            background-color: {self.surface};
            border: 1px solid {self.border_subtle};
            border-radius: 6px;
            padding: 4px 8px;
        }}
        QMenu {{
            background-color: {self.surface};
            border: 1px solid {self.border_subtle};
            padding: 4px;
        }}
        QMenu::item:selected {{
            background-color: {self.accent_primary};
            color: #031525;
        }}
        QMenu::item:disabled {{
            color: {self.text_secondary};
        }}
        QWidget#breakOverlay {{
            background-color: {self.overlay_background};
        }}
        QLabel#overlayCountdown {{
            background-color: transparent;
            color: {self.text_primary};
            font-size: 96px;
            font-weight: 700;
        }}
        QLabel#overlayCaption {{
            background-color: transparent;
            color: {self.text_secondary};
            font-size: 22px;
        }}
        """
