from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional
from urllib.parse import quote

import httpx

from ..config.settings import GoogleSettings
from ..domain import CalendarEvent
from ..utils.dates import DEFAULT_PARSER, DateParser

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class GoogleCalendarSource:
    """Reads the remaining events of the current day from Google Calendar.

    ``fetch_today_events`` never raises: ``None`` means the fetch failed and an
    empty list means the day genuinely has nothing left on it.
    """

    def __init__(
        self,
        *,
        settings: GoogleSettings,
        token_provider: Callable[[], Optional[str]],
        http_client: Optional[httpx.Client] = None,
        parser: DateParser = DEFAULT_PARSER,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.settings = settings
        self.token_provider = token_provider
        self.parser = parser
        self.clock = clock
        self._http = http_client or httpx.Client(timeout=settings.timeout_seconds)

    @property
    def events_url(self) -> str:
        base = self.settings.api_base_url.rstrip("/")
        return f"{base}/calendars/{quote(self.settings.calendar_id, safe='@.')}/events"

    def _day_window(self) -> tuple[str, str]:
        now = self.clock()
        end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=0)
        return now.isoformat(timespec="seconds"), end_of_day.isoformat(timespec="seconds")

    def fetch_today_events(self) -> Optional[List[CalendarEvent]]:
        token = self.token_provider()
        if not token:
            logger.warning("No access token available; skipping calendar fetch")
            return None

        time_min, time_max = self._day_window()
        params = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        try:
            response = self._http.get(
                self.events_url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Calendar API returned %s: %s", exc.response.status_code, exc.response.text[:200])
            return None
        except httpx.HTTPError as exc:
            logger.error("Calendar request failed: %s", exc)
            return None
        except ValueError as exc:
            logger.error("Could not decode calendar response: %s", exc)
            return None

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.error("Calendar response has no 'items' list")
            return None

        events: list[CalendarEvent] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            event = CalendarEvent.from_record(item, parser=self.parser.parse)
            if event.start_raw and event.starts_at is None:
                logger.warning("Unparsable start time %r on event %r", event.start_raw, event.display_title)
            events.append(event)
        return events
