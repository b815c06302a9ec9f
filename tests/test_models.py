from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from meetbreak.domain import CalendarEvent, OAuthTokens

NOW = datetime(2025, 6, 25, 9, 0, tzinfo=timezone.utc)


def test_event_from_google_record_with_hangout_link():
    event = CalendarEvent.from_record(
        {
            "id": "evt1",
            "summary": "Design review",
            "start": {"dateTime": "2025-06-25T10:00:00+02:00"},
            "end": {"dateTime": "2025-06-25T10:30:00+02:00"},
            "hangoutLink": "https://meet.google.com/aaa-bbbb-ccc",
        }
    )

    assert event.id == "evt1"
    assert event.starts_at == datetime(2025, 6, 25, 8, 0, tzinfo=timezone.utc)
    assert event.ends_at == datetime(2025, 6, 25, 8, 30, tzinfo=timezone.utc)
    assert event.conference_link == "https://meet.google.com/aaa-bbbb-ccc"
    assert event.start_raw == "2025-06-25T10:00:00+02:00"
    assert event.is_trigger_eligible


def test_event_falls_back_to_video_entry_point():
    event = CalendarEvent.from_record(
        {
            "id": "evt2",
            "start": {"dateTime": "2025-06-25T10:00:00Z"},
            "conferenceData": {
                "entryPoints": [
                    {"entryPointType": "phone", "uri": "tel:+1-555-0100"},
                    {"entryPointType": "video", "uri": "https://zoom.us/j/123"},
                ]
            },
        }
    )

    assert event.conference_link == "https://zoom.us/j/123"
    assert event.display_title == "(no title)"


def test_blank_hangout_link_is_not_a_conference():
    event = CalendarEvent.from_record({"id": "evt3", "start": {"dateTime": "2025-06-25T10:00:00Z"}, "hangoutLink": "  "})
    assert event.conference_link is None
    assert not event.is_trigger_eligible


def test_all_day_event_has_no_start_instant():
    event = CalendarEvent.from_record({"id": "evt4", "summary": "Holiday", "start": {"date": "2025-06-25"}})

    assert event.starts_at is None
    assert event.all_day_date == date(2025, 6, 25)
    assert not event.is_trigger_eligible


def test_unparsable_start_is_kept_raw_but_untimed():
    event = CalendarEvent.from_record(
        {"id": "evt5", "start": {"dateTime": "soon"}, "hangoutLink": "https://meet.google.com/x"}
    )

    assert event.start_raw == "soon"
    assert event.starts_at is None
    assert not event.is_trigger_eligible


def test_tokens_expire_with_leeway():
    tokens = OAuthTokens(access_token="abc", expires_at=NOW + timedelta(seconds=90))

    assert not tokens.is_expired(NOW)
    assert tokens.is_expired(NOW + timedelta(seconds=31))
    assert not OAuthTokens(access_token="abc").is_expired(NOW)


def test_refresh_response_keeps_existing_refresh_token():
    previous = OAuthTokens(access_token="old", refresh_token="refresh-1")
    refreshed = OAuthTokens.from_token_response({"access_token": "new", "expires_in": 3600}, previous=previous, now=NOW)

    assert refreshed.access_token == "new"
    assert refreshed.refresh_token == "refresh-1"
    assert refreshed.expires_at == NOW + timedelta(hours=1)


def test_tokens_survive_record_conversion():
    tokens = OAuthTokens(access_token="a", refresh_token="r", expires_at=NOW)
    assert OAuthTokens.from_record(tokens.to_record()) == tokens
