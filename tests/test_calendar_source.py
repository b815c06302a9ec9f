from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from meetbreak.config.settings import GoogleSettings
from meetbreak.services import GoogleCalendarSource

LOCAL_NOW = datetime(2025, 6, 25, 9, 15, 30, tzinfo=timezone(timedelta(hours=2)))


def _settings(**overrides) -> GoogleSettings:
    values = dict(
        client_id="client",
        client_secret="secret",
        redirect_host="127.0.0.1",
        redirect_port=52152,
        calendar_id="primary",
        api_base_url="https://calendar.test/v3",
        auth_url="https://auth.test/authorize",
        token_url="https://auth.test/token",
        scope="calendar.readonly",
        timeout_seconds=5.0,
    )
    values.update(overrides)
    return GoogleSettings(**values)


def _source(handler, *, token="token-123") -> GoogleCalendarSource:
    return GoogleCalendarSource(
        settings=_settings(),
        token_provider=lambda: token,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        clock=lambda: LOCAL_NOW,
    )


def test_fetches_todays_events_with_expected_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "id": "a",
                        "summary": "Standup",
                        "start": {"dateTime": "2025-06-25T10:00:00+02:00"},
                        "hangoutLink": "https://meet.google.com/abc",
                    },
                    {"id": "b", "summary": "Lunch", "start": {"dateTime": "2025-06-25T12:00:00+02:00"}},
                    {"summary": "no id"},
                ]
            },
        )

    events = _source(handler).fetch_today_events()

    assert [event.id for event in events] == ["a", "b"]
    assert events[0].conference_link == "https://meet.google.com/abc"
    assert events[1].conference_link is None
    assert seen["auth"] == "Bearer token-123"
    assert seen["url"].path == "/v3/calendars/primary/events"
    params = seen["url"].params
    assert params["timeMin"] == "2025-06-25T09:15:30+02:00"
    assert params["timeMax"] == "2025-06-25T23:59:59+02:00"
    assert params["singleEvents"] == "true"
    assert params["orderBy"] == "startTime"


def test_empty_day_is_an_empty_list():
    events = _source(lambda request: httpx.Response(200, json={"items": []})).fetch_today_events()
    assert events == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="backend error"),
        httpx.Response(401, json={"error": "unauthorized"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"kind": "calendar#events"}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
def test_failures_return_none(response):
    assert _source(lambda request: response).fetch_today_events() is None


def test_transport_error_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    assert _source(handler).fetch_today_events() is None


def test_missing_token_skips_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"items": []})

    assert _source(handler, token=None).fetch_today_events() is None
    assert calls == []
