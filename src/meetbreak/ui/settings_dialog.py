from __future__ import annotations

from typing import Any

from PyQt6.QtWidgets import QDialog, QDialogButtonBox, QDoubleSpinBox, QFormLayout, QSpinBox, QVBoxLayout

from ..core import Preferences
from ..services.scheduler import MAX_TOLERANCE_SECONDS, MIN_TOLERANCE_SECONDS


class SettingsDialog(QDialog):
    def __init__(self, *, preferences: Preferences) -> None:
        super().__init__()
        self.setWindowTitle("Settings")
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.break_input = QSpinBox()
        self.break_input.setRange(5, 600)
        self.break_input.setSuffix(" s")
        self.break_input.setValue(preferences.break_duration_seconds)
        form.addRow("Break duration", self.break_input)

        self.refresh_input = QSpinBox()
        self.refresh_input.setRange(1, 120)
        self.refresh_input.setSuffix(" min")
        self.refresh_input.setValue(preferences.refresh_interval_minutes)
        form.addRow("Refresh events every", self.refresh_input)

        self.tolerance_input = QDoubleSpinBox()
        self.tolerance_input.setRange(MIN_TOLERANCE_SECONDS, MAX_TOLERANCE_SECONDS)
        self.tolerance_input.setSingleStep(0.1)
        self.tolerance_input.setDecimals(1)
        self.tolerance_input.setSuffix(" s")
        self.tolerance_input.setValue(preferences.tolerance_seconds)
        form.addRow("Start tolerance", self.tolerance_input)

        layout.addLayout(form)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def values(self) -> dict[str, Any]:
        return {
            "break_duration_seconds": self.break_input.value(),
            "refresh_interval_minutes": self.refresh_input.value(),
            "tolerance_seconds": round(self.tolerance_input.value(), 1),
        }
