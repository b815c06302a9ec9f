"""Timestamp parsing for calendar payloads.

Calendar payloads carry start times in a handful of shapes. Each accepted shape is a small pure
strategy; :class:`DateParser` walks them in order and returns the first
timezone-aware result. Nothing here raises on bad input, an unparsable
string simply yields ``None``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Tuple

if TYPE_CHECKING:
    from ..domain import CalendarEvent

logger = logging.getLogger(__name__)

_OFFSET = r"(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)"
_FRACTIONAL_ISO = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(?P<fraction>\d+)(?P<offset>Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)
_INTERNET_ISO = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?P<offset>Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)
_BASIC_ISO = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}:\d{2})" + _OFFSET + r"$",
    re.IGNORECASE,
)


def _offset_to_tz(raw: str) -> timezone:
    if raw.upper() == "Z":
        return timezone.utc
    sign = -1 if raw[0] == "-" else 1
    digits = raw[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4] or 0)
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid UTC offset: {raw!r}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _as_local(naive: datetime) -> datetime:
    return naive.astimezone()


def parse_fractional_iso(text: str) -> Optional[datetime]:
    """``2025-06-25T10:00:00.123Z`` / ``2025-06-25T10:00:00.123456+02:00``."""

    match = _FRACTIONAL_ISO.match(text)
    if not match:
        return None
    base = datetime.strptime(match["base"], "%Y-%m-%dT%H:%M:%S")
    micro = int(match["fraction"][:6].ljust(6, "0"))
    return base.replace(microsecond=micro, tzinfo=_offset_to_tz(match["offset"]))


def parse_internet_iso(text: str) -> Optional[datetime]:
    """``2025-06-25T10:00:00Z`` / ``2025-06-25T10:00:00-04:00``."""

    match = _INTERNET_ISO.match(text)
    if not match:
        return None
    base = datetime.strptime(match["base"], "%Y-%m-%dT%H:%M:%S")
    return base.replace(tzinfo=_offset_to_tz(match["offset"]))


def parse_basic_iso(text: str) -> Optional[datetime]:
    """Dash/colon separated date and time with a basic or extended offset."""

    match = _BASIC_ISO.match(text)
    if not match:
        return None
    base = datetime.strptime(f"{match['date']}T{match['time']}", "%Y-%m-%dT%H:%M:%S")
    return base.replace(tzinfo=_offset_to_tz(match["offset"]))


def parse_fixed_zoned(text: str) -> Optional[datetime]:
    # Numeric-only directives, so the result does not depend on the process locale.
    return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S%z")


def parse_fixed_local(text: str) -> Optional[datetime]:
    return _as_local(datetime.strptime(text, "%Y-%m-%dT%H:%M:%S"))


def parse_plain_local(text: str) -> Optional[datetime]:
    return _as_local(datetime.strptime(text, "%Y-%m-%d %H:%M:%S"))


@dataclass(frozen=True)
class DateStrategy:
    name: str
    parse: Callable[[str], Optional[datetime]]

    def __call__(self, text: str) -> Optional[datetime]:
        try:
            return self.parse(text)
        except ValueError:
            return None


DEFAULT_STRATEGIES: Tuple[DateStrategy, ...] = (
    DateStrategy("iso8601-fractional", parse_fractional_iso),
    DateStrategy("iso8601-internet", parse_internet_iso),
    DateStrategy("iso8601-basic", parse_basic_iso),
    DateStrategy("fixed-zoned", parse_fixed_zoned),
    DateStrategy("fixed-local", parse_fixed_local),
    DateStrategy("plain-local", parse_plain_local),
)


@dataclass(frozen=True)
class DateParser:
    strategies: Tuple[DateStrategy, ...] = DEFAULT_STRATEGIES
    debug: bool = False
    max_debug_events: int = 3

    def parse(self, text: Optional[str]) -> Optional[datetime]:
        if text is None:
            return None
        candidate = text.strip()
        if not candidate:
            return None
        for strategy in self.strategies:
            parsed = strategy(candidate)
            if parsed is not None:
                return parsed
        logger.debug("Unparsable timestamp %r", text)
        return None

    def describe_events(self, events: Iterable["CalendarEvent"], *, now: Optional[datetime] = None) -> None:
        """Log how the first few event start strings were interpreted."""

        if not self.debug:
            return
        current = now or datetime.now(timezone.utc)
        logger.debug("=== Event date formats ===")
        for index, event in enumerate(events):
            if index >= self.max_debug_events:
                break
            if event.start_raw is None:
                continue
            logger.debug("Event %r: original string %r", event.display_title, event.start_raw)
            parsed = self.parse(event.start_raw)
            if parsed is None:
                logger.error("Could not parse start of %r; tried %s", event.display_title, ", ".join(s.name for s in self.strategies))
                continue
            logger.debug(
                "  parsed %s (%d s from now)",
                parsed.strftime("%Y-%m-%d %H:%M:%S %Z"),
                int((parsed - current).total_seconds()),
            )
        logger.debug("=== End event date formats ===")


DEFAULT_PARSER = DateParser()


def parse_datetime(text: Optional[str]) -> Optional[datetime]:
    return DEFAULT_PARSER.parse(text)


def clock_label(moment: datetime) -> str:
    return moment.astimezone().strftime("%H:%M")


def event_time_range(event: "CalendarEvent") -> str:
    """Short local time span for menus and listings, e.g. ``09:30-10:00``."""

    if event.starts_at is None:
        return "all day" if event.all_day_date is not None else "--:--"
    start = clock_label(event.starts_at)
    if event.ends_at is None or event.ends_at <= event.starts_at:
        return start
    return f"{start}-{clock_label(event.ends_at)}"
