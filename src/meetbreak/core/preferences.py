from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import orjson

from .config import PREFERENCES_FILE, ensure_data_dir

logger = logging.getLogger(__name__)

PreferenceListener = Callable[[str, Any], None]


@dataclass(frozen=True)
class Preferences:
    break_duration_seconds: int = 10
    refresh_interval_minutes: int = 5
    tolerance_seconds: float = 0.5

    @classmethod
    def from_record(cls, record: Dict[str, Any], *, defaults: Optional["Preferences"] = None) -> "Preferences":
        base = defaults or cls()
        values: Dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in record:
                continue
            caster = float if item.name == "tolerance_seconds" else int
            try:
                values[item.name] = caster(record[item.name])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid preference %s=%r", item.name, record[item.name])
        return replace(base, **values)

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


class PreferencesStore:
    """User-editable preferences persisted next to the other app data.

    Listeners registered with :meth:`subscribe` are called with ``(name, value)``
    for every key whose value actually changed during :meth:`update`.
    """

    def __init__(self, *, defaults: Optional[Preferences] = None, path: Optional[Path] = None) -> None:
        self._path = path or PREFERENCES_FILE
        self._defaults = defaults or Preferences()
        self._listeners: List[PreferenceListener] = []
        self._current = self._load()

    def _load(self) -> Preferences:
        if not self._path.exists():
            return self._defaults
        try:
            data = orjson.loads(self._path.read_bytes() or b"{}")
        except orjson.JSONDecodeError:
            logger.warning("Preferences file %s is corrupt; using defaults", self._path)
            return self._defaults
        if not isinstance(data, dict):
            return self._defaults
        return Preferences.from_record(data, defaults=self._defaults)

    def _persist(self) -> None:
        if self._path == PREFERENCES_FILE:
            ensure_data_dir()
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(self._current.to_record(), option=orjson.OPT_INDENT_2)
        self._path.write_bytes(payload + b"\n")

    @property
    def current(self) -> Preferences:
        return self._current

    @property
    def break_duration_seconds(self) -> int:
        return self._current.break_duration_seconds

    @property
    def refresh_interval_minutes(self) -> int:
        return self._current.refresh_interval_minutes

    @property
    def tolerance_seconds(self) -> float:
        return self._current.tolerance_seconds

    def subscribe(self, listener: PreferenceListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: Any) -> Preferences:
        known = {item.name for item in fields(Preferences)}
        unknown = set(changes) - known
        if unknown:
            raise KeyError(f"Unknown preference(s): {', '.join(sorted(unknown))}")

        previous = self._current
        self._current = Preferences.from_record(changes, defaults=previous)
        changed = {
            name: getattr(self._current, name)
            for name in changes
            if getattr(self._current, name) != getattr(previous, name)
        }
        if not changed:
            return self._current

        self._persist()
        for name, value in changed.items():
            logger.info("Preference %s changed to %s", name, value)
            for listener in list(self._listeners):
                listener(name, value)
        return self._current
