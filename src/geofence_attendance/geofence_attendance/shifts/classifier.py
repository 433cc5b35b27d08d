from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import hhmm, now_local
from ..core.enums import ShiftPeriod
from .model import ShiftSchedule


def classify_current_shift(schedule: ShiftSchedule, *, now: Optional[datetime] = None) -> ShiftPeriod:
    """Which configured window the local wall-clock time falls in.

    Informational only. Overlapping windows resolve to the morning shift.
    """

    current = hhmm(now or now_local())
    if schedule.morning.contains(current):
        return ShiftPeriod.MORNING
    if schedule.evening.contains(current):
        return ShiftPeriod.EVENING
    return ShiftPeriod.OUTSIDE


def greeting_for(now: Optional[datetime] = None) -> str:
    hour = (now or now_local()).hour
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"
