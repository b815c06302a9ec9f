from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "MeetBreak"
APP_AUTHOR = "MeetBreak"
DATA_DIR = Path(user_data_dir(APP_NAME, APP_AUTHOR))
PREFERENCES_FILE = DATA_DIR / "preferences.json"
TOKEN_FILE = DATA_DIR / "google_token.json"
LOG_FILE = DATA_DIR / "meetbreak.log"


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
