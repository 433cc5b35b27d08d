from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol, Tuple

from ..attendance.model import LocationSample
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LOCATION_MAX_AGE_SECONDS
from ..core.enums import LocationErrorCode

logger = logging.getLogger(__name__)

OnUpdate = Callable[[LocationSample], None]
OnError = Callable[[LocationErrorCode], None]


class LocationError(Exception):
    """Raised by a positioning sensor when no fix can be produced."""

    def __init__(self, code: LocationErrorCode, message: Optional[str] = None):
        self.code = code
        super().__init__(message or location_error_message(code))


def location_error_message(code: LocationErrorCode) -> str:
    return {
        LocationErrorCode.PERMISSION_DENIED: "Location access denied. Please enable location permissions.",
        LocationErrorCode.POSITION_UNAVAILABLE: "Location information is unavailable.",
        LocationErrorCode.TIMEOUT: "Location request timed out.",
    }.get(code, "An unknown error occurred while retrieving location.")


def parse_error_code(value: Optional[str]) -> LocationErrorCode:
    try:
        return LocationErrorCode(str(value or "").strip().lower())
    except ValueError:
        return LocationErrorCode.UNKNOWN


class PositioningSensor(Protocol):
    def get_current_location(self, *, timeout: float) -> LocationSample:
        """One-shot fix. Raises LocationError."""

        raise NotImplementedError

    def watch_location(self, on_update: OnUpdate, on_error: OnError) -> int:
        """Continuous updates; returns a handle for unsubscribe()."""

        raise NotImplementedError

    def unsubscribe(self, handle: int) -> None:
        raise NotImplementedError


class ReportedLocationSensor(PositioningSensor):
    """Sensor fed by fixes the browser reports (navigator.geolocation on the client).

    `max_age` bounds how old a cached fix may be for a one-shot request; older
    fixes make the request wait for the next report.
    """

    def __init__(self, *, max_age: float = DEFAULT_LOCATION_MAX_AGE_SECONDS, clock: Callable[[], datetime] = now_local):
        self._max_age = float(max_age)
        self._clock = clock
        self._cond = threading.Condition()
        self._latest: Optional[LocationSample] = None
        self._watchers: Dict[int, Tuple[OnUpdate, OnError]] = {}
        self._ids = itertools.count(1)

    def report(self, sample: LocationSample) -> None:
        with self._cond:
            self._latest = sample
            watchers = list(self._watchers.values())
            self._cond.notify_all()
        for on_update, _ in watchers:
            on_update(sample)

    def report_error(self, code: LocationErrorCode) -> None:
        logger.info("Client reported location error: %s", code.value)
        with self._cond:
            watchers = list(self._watchers.values())
        for _, on_error in watchers:
            on_error(code)

    def _fresh(self) -> Optional[LocationSample]:
        if self._latest is None:
            return None
        age = (self._clock() - self._latest.timestamp).total_seconds()
        return self._latest if age <= self._max_age else None

    def get_current_location(self, *, timeout: float) -> LocationSample:
        with self._cond:
            if not self._cond.wait_for(lambda: self._fresh() is not None, timeout=timeout):
                raise LocationError(LocationErrorCode.TIMEOUT)
            return self._latest

    def watch_location(self, on_update: OnUpdate, on_error: OnError) -> int:
        with self._cond:
            handle = next(self._ids)
            self._watchers[handle] = (on_update, on_error)
            return handle

    def unsubscribe(self, handle: int) -> None:
        with self._cond:
            self._watchers.pop(handle, None)
