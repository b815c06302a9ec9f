"""MeetBreak: a tray break reminder that steps in when video meetings start."""

from __future__ import annotations

__all__ = ["main"]


def main() -> None:
    from .cli import main as cli_main

    cli_main()
