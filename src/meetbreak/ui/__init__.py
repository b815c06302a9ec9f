"""PyQt6 desktop shell: tray menu, break overlay and settings."""
