from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone

from .bootstrap import configure_logging
from .config import get_settings
from .core import TokenStore
from .services import GoogleAuthError, GoogleAuthService, GoogleCalendarSource, select_next_event
from .utils.dates import DateParser, event_time_range


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MeetBreak command line interface.")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("gui", help="Launch the tray application (default).")
    events = subparsers.add_parser("events", help="Print today's remaining events and the next video meeting.")
    events.add_argument("-v", "--verbose", action="store_true", help="Also print the first line of each description.")
    subparsers.add_parser("login", help="Connect a Google Calendar account in the browser.")
    subparsers.add_parser("logout", help="Forget the stored Google Calendar tokens.")

    return parser


def _auth_service() -> GoogleAuthService:
    return GoogleAuthService(settings=get_settings().google, store=TokenStore())


def _print_events(*, verbose: bool = False) -> int:
    settings = get_settings()
    auth = _auth_service()
    if not auth.is_authenticated:
        print("Not connected. Run `meetbreak login` first.", file=sys.stderr)
        return 1
    source = GoogleCalendarSource(
        settings=settings.google,
        token_provider=auth.ensure_fresh_token,
        parser=DateParser(debug=settings.debug.enabled, max_debug_events=settings.debug.max_events_to_debug),
    )
    events = source.fetch_today_events()
    if events is None:
        print("Could not load events; see the log for details.", file=sys.stderr)
        return 1
    if not events:
        print("No pending events today.")
        return 0

    upcoming = select_next_event(events, datetime.now(timezone.utc))
    for event in events:
        flag = "*" if upcoming is not None and event.id == upcoming.id else " "
        link = event.conference_link or "-"
        print(f"{flag} {event_time_range(event):<11}  {event.display_title}  [{link}]")
        if verbose and event.description and event.description.strip():
            print(f"      {event.description.strip().splitlines()[0]}")
    if upcoming is None:
        print("No more video meetings today.")
    return 0


def _login() -> int:
    auth = _auth_service()
    try:
        tokens = auth.authorize_interactively()
    except GoogleAuthError as exc:
        print(f"Sign-in failed: {exc}", file=sys.stderr)
        return 1
    auth.complete_sign_in(tokens)
    print("Google Calendar connected.")
    return 0


def _logout() -> int:
    _auth_service().sign_out()
    print("Signed out.")
    return 0


def main() -> None:
    configure_logging()
    logging.getLogger(__name__).info("MeetBreak CLI starting")
    parser = build_parser()
    args = parser.parse_args()

    if args.command in (None, "gui"):
        from .ui.app import run_gui

        run_gui()
    elif args.command == "events":
        sys.exit(_print_events(verbose=args.verbose))
    elif args.command == "login":
        sys.exit(_login())
    elif args.command == "logout":
        sys.exit(_logout())
    else:  # pragma: no cover - argparse enforces choices
        parser.print_help()


if __name__ == "__main__":
    main()
