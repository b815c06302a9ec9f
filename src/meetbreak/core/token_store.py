from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import orjson

from ..domain import OAuthTokens
from .config import TOKEN_FILE, ensure_data_dir

logger = logging.getLogger(__name__)


class TokenStore:
    """Keeps the Google OAuth tokens on disk between sessions."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or TOKEN_FILE

    def load(self) -> Optional[OAuthTokens]:
        if not self._path.exists():
            return None
        try:
            data = orjson.loads(self._path.read_bytes() or b"{}")
            return OAuthTokens.from_record(data)
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning("Stored token file %s is unreadable; ignoring it", self._path)
            return None

    def save(self, tokens: OAuthTokens) -> None:
        if self._path == TOKEN_FILE:
            ensure_data_dir()
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(tokens.to_record(), option=orjson.OPT_INDENT_2)
        self._path.write_bytes(payload + b"\n")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
