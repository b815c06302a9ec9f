from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from ..utils.dates import parse_datetime

DateParseFn = Callable[[Optional[str]], Optional[datetime]]


def _boundary(record: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = record.get(key)
    return value if isinstance(value, dict) else {}


def _conference_link(record: Dict[str, Any]) -> Optional[str]:
    link = record.get("hangoutLink")
    if isinstance(link, str) and link.strip():
        return link.strip()
    conference = record.get("conferenceData")
    if not isinstance(conference, dict):
        return None
    for entry in conference.get("entryPoints") or []:
        if not isinstance(entry, dict) or entry.get("entryPointType") != "video":
            continue
        uri = entry.get("uri")
        if isinstance(uri, str) and uri.strip():
            return uri.strip()
    return None


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    id: str
    summary: Optional[str] = None
    starts_at: Optional[datetime] = None
    conference_link: Optional[str] = None
    start_raw: Optional[str] = None
    ends_at: Optional[datetime] = None
    all_day_date: Optional[date] = None
    description: Optional[str] = None

    @property
    def is_trigger_eligible(self) -> bool:
        return self.starts_at is not None and bool(self.conference_link)

    @property
    def display_title(self) -> str:
        return self.summary or "(no title)"

    @classmethod
    def from_record(cls, record: Dict[str, Any], *, parser: DateParseFn = parse_datetime) -> "CalendarEvent":
        """Build an event from a Google Calendar ``events`` resource."""

        start = _boundary(record, "start")
        end = _boundary(record, "end")
        start_raw = start.get("dateTime")
        all_day: Optional[date] = None
        if isinstance(start.get("date"), str):
            try:
                all_day = date.fromisoformat(start["date"])
            except ValueError:
                all_day = None
        return cls(
            id=str(record["id"]),
            summary=record.get("summary"),
            starts_at=parser(start_raw) if isinstance(start_raw, str) else None,
            conference_link=_conference_link(record),
            start_raw=start_raw if isinstance(start_raw, str) else None,
            ends_at=parser(end.get("dateTime")) if isinstance(end.get("dateTime"), str) else None,
            all_day_date=all_day,
            description=record.get("description"),
        )


@dataclass(frozen=True, slots=True)
class OAuthTokens:
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None, *, leeway: timedelta = timedelta(seconds=60)) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        return current + leeway >= self.expires_at

    @classmethod
    def from_token_response(
        cls,
        payload: Dict[str, Any],
        *,
        previous: Optional["OAuthTokens"] = None,
        now: Optional[datetime] = None,
    ) -> "OAuthTokens":
        issued = now or datetime.now(timezone.utc)
        expires_in = payload.get("expires_in")
        expires_at = issued + timedelta(seconds=int(expires_in)) if expires_in is not None else None
        refresh_token = payload.get("refresh_token") or (previous.refresh_token if previous else None)
        return cls(
            access_token=str(payload["access_token"]),
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "OAuthTokens":
        expires_at = record.get("expires_at")
        return cls(
            access_token=str(record["access_token"]),
            refresh_token=record.get("refresh_token"),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
