from __future__ import annotations

import orjson
import pytest

from meetbreak.core import Preferences, PreferencesStore


def test_missing_file_uses_defaults(tmp_path):
    store = PreferencesStore(path=tmp_path / "preferences.json", defaults=Preferences(break_duration_seconds=20))

    assert store.break_duration_seconds == 20
    assert store.refresh_interval_minutes == 5
    assert store.tolerance_seconds == 0.5


def test_update_persists_and_reloads(tmp_path):
    path = tmp_path / "nested" / "preferences.json"
    PreferencesStore(path=path).update(break_duration_seconds=30, tolerance_seconds="1.5")

    assert orjson.loads(path.read_bytes())["break_duration_seconds"] == 30
    reloaded = PreferencesStore(path=path)
    assert reloaded.break_duration_seconds == 30
    assert reloaded.tolerance_seconds == 1.5


def test_listeners_only_hear_real_changes(tmp_path):
    store = PreferencesStore(path=tmp_path / "preferences.json")
    heard = []
    store.subscribe(lambda name, value: heard.append((name, value)))

    store.update(refresh_interval_minutes=5, tolerance_seconds=1.0)

    assert heard == [("tolerance_seconds", 1.0)]


def test_unchanged_update_does_not_write(tmp_path):
    path = tmp_path / "preferences.json"
    PreferencesStore(path=path).update(break_duration_seconds=10)
    assert not path.exists()


def test_unsubscribe_stops_notifications(tmp_path):
    store = PreferencesStore(path=tmp_path / "preferences.json")
    heard = []
    unsubscribe = store.subscribe(lambda name, value: heard.append(name))

    unsubscribe()
    store.update(break_duration_seconds=15)

    assert heard == []


def test_unknown_key_is_rejected(tmp_path):
    store = PreferencesStore(path=tmp_path / "preferences.json")
    with pytest.raises(KeyError):
        store.update(volume=11)


def test_invalid_values_are_ignored(tmp_path):
    store = PreferencesStore(path=tmp_path / "preferences.json")
    store.update(tolerance_seconds="lots")
    assert store.tolerance_seconds == 0.5


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text("{not json")

    assert PreferencesStore(path=path).current == Preferences()
