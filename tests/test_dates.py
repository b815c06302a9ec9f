from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from meetbreak.domain import CalendarEvent
from meetbreak.utils.dates import (
    DEFAULT_STRATEGIES,
    DateParser,
    DateStrategy,
    event_time_range,
    parse_basic_iso,
    parse_datetime,
    parse_fractional_iso,
    parse_internet_iso,
)

UTC_TEN = datetime(2025, 6, 25, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2025-06-25T10:00:00.250Z", UTC_TEN.replace(microsecond=250000)),
        ("2025-06-25T12:00:00.5+02:00", UTC_TEN.replace(microsecond=500000)),
        ("2025-06-25T10:00:00Z", UTC_TEN),
        ("2025-06-25T06:00:00-04:00", UTC_TEN),
        ("2025-06-25T15:30:00+0530", UTC_TEN),
        ("2025-06-25 10:00:00Z", UTC_TEN),
        ("2025-06-25T12:00:00+02", UTC_TEN),
    ],
)
def test_parses_zoned_formats(text, expected):
    parsed = parse_datetime(text)
    assert parsed == expected
    assert parsed.tzinfo is not None


def test_fraction_longer_than_microseconds_is_truncated():
    parsed = parse_datetime("2025-06-25T10:00:00.123456789Z")
    assert parsed == UTC_TEN.replace(microsecond=123456)


def test_zone_less_timestamp_is_local_time():
    parsed = parse_datetime("2025-06-25T10:00:00")
    assert parsed == datetime(2025, 6, 25, 10, 0).astimezone()
    assert parsed.utcoffset() is not None


def test_plain_space_separated_timestamp_is_local_time():
    parsed = parse_datetime("2025-06-25 10:00:00")
    assert parsed == datetime(2025, 6, 25, 10, 0).astimezone()


@pytest.mark.parametrize(
    "text",
    [None, "", "   ", "tomorrow at ten", "2025-06-25", "2025-13-01T10:00:00Z", "2025-06-25T10:00:00+25:00"],
)
def test_unparsable_input_returns_none(text):
    assert parse_datetime(text) is None


def test_surrounding_whitespace_is_ignored():
    assert parse_datetime("  2025-06-25T10:00:00Z\n") == UTC_TEN


def test_individual_strategies_reject_other_shapes():
    assert parse_fractional_iso("2025-06-25T10:00:00Z") is None
    assert parse_internet_iso("2025-06-25T10:00:00.1Z") is None
    assert parse_basic_iso("2025-06-25T10:00:00") is None


def test_strategies_are_tried_in_order():
    calls = []

    def first(text):
        calls.append("first")
        return None

    def second(text):
        calls.append("second")
        return UTC_TEN

    def third(text):
        calls.append("third")
        return UTC_TEN + timedelta(hours=1)

    parser = DateParser(strategies=(DateStrategy("a", first), DateStrategy("b", second), DateStrategy("c", third)))

    assert parser.parse("anything") == UTC_TEN
    assert calls == ["first", "second"]


def test_strategy_value_errors_become_misses():
    def explode(text):
        raise ValueError("bad")

    parser = DateParser(strategies=(DateStrategy("boom", explode),) + DEFAULT_STRATEGIES)
    assert parser.parse("2025-06-25T10:00:00Z") == UTC_TEN


def test_default_strategy_order_is_explicit():
    assert [strategy.name for strategy in DEFAULT_STRATEGIES] == [
        "iso8601-fractional",
        "iso8601-internet",
        "iso8601-basic",
        "fixed-zoned",
        "fixed-local",
        "plain-local",
    ]


def test_describe_events_logs_only_in_debug_mode(caplog):
    events = [
        CalendarEvent(id="1", summary="Standup", start_raw="2025-06-25T10:00:00Z"),
        CalendarEvent(id="2", summary="Broken", start_raw="not a date"),
    ]

    with caplog.at_level(logging.DEBUG, logger="meetbreak.utils.dates"):
        DateParser().describe_events(events, now=UTC_TEN)
    assert caplog.records == []

    with caplog.at_level(logging.DEBUG, logger="meetbreak.utils.dates"):
        DateParser(debug=True).describe_events(events, now=UTC_TEN)
    messages = [record.getMessage() for record in caplog.records]
    assert any("Standup" in message for message in messages)
    assert any(record.levelno == logging.ERROR and "Broken" in record.getMessage() for record in caplog.records)


def test_event_time_range_formats_local_span():
    def local(moment):
        return moment.astimezone().strftime("%H:%M")

    end = UTC_TEN + timedelta(minutes=30)

    assert event_time_range(CalendarEvent(id="1", starts_at=UTC_TEN, ends_at=end)) == f"{local(UTC_TEN)}-{local(end)}"
    assert event_time_range(CalendarEvent(id="2", starts_at=UTC_TEN)) == local(UTC_TEN)
    assert event_time_range(CalendarEvent(id="3", all_day_date=UTC_TEN.date())) == "all day"
    assert event_time_range(CalendarEvent(id="4", start_raw="garbage")) == "--:--"
