"""Application paths and on-disk persistence."""

from .config import APP_NAME, DATA_DIR, LOG_FILE, PREFERENCES_FILE, TOKEN_FILE, ensure_data_dir
from .preferences import Preferences, PreferencesStore
from .token_store import TokenStore

__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_FILE",
    "PREFERENCES_FILE",
    "TOKEN_FILE",
    "Preferences",
    "PreferencesStore",
    "TokenStore",
    "ensure_data_dir",
]
