from __future__ import annotations

from enum import Enum


class SchedulerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WAITING = "waiting"
    STANDBY = "standby"
