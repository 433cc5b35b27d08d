from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.constants import DEFAULT_SHIFT_SCHEDULE
from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def require_hhmm(value: Any, field_name: str) -> str:
    value = str(value or "").strip()
    if not _HHMM.match(value):
        raise ValidationError(f"{field_name} must be HH:MM (24h)")
    return value


@dataclass(frozen=True)
class ShiftWindow:
    """Inclusive HH:MM window within one day."""

    start: str
    end: str

    def __post_init__(self):
        require_hhmm(self.start, "start")
        require_hhmm(self.end, "end")

    def contains(self, current: str) -> bool:
        # Zero-padded HH:MM strings order the same as the times they name.
        return self.start <= current <= self.end


@dataclass(frozen=True)
class ShiftSchedule:
    morning: ShiftWindow
    evening: ShiftWindow

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShiftSchedule":
        try:
            return cls(
                morning=ShiftWindow(start=data["morning"]["start"], end=data["morning"]["end"]),
                evening=ShiftWindow(start=data["evening"]["start"], end=data["evening"]["end"]),
            )
        except (KeyError, TypeError):
            raise ValidationError("Shift schedule needs morning/evening start and end") from None

    @classmethod
    def default(cls) -> "ShiftSchedule":
        return cls.from_dict(DEFAULT_SHIFT_SCHEDULE)

    def to_dict(self) -> dict:
        return {
            "morning": {"start": self.morning.start, "end": self.morning.end},
            "evening": {"start": self.evening.start, "end": self.evening.end},
        }
