from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..attendance.model import LocationSample
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LOCATION_MAX_AGE_SECONDS, DEFAULT_LOCATION_TIMEOUT_SECONDS
from ..core.enums import LocationErrorCode
from ..core.exceptions import LocationUnavailable
from ..geofences.geometry import is_inside_any_geofence
from ..geofences.model import Geofence
from .sensor import LocationError, PositioningSensor, location_error_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerSnapshot:
    sample: Optional[LocationSample]
    inside_geofence: bool
    last_error: Optional[LocationErrorCode]
    is_tracking: bool

    @property
    def error_message(self) -> Optional[str]:
        return location_error_message(self.last_error) if self.last_error else None


class LocationTracker:
    """Single consumer of one user's location stream.

    Each update overwrites the current sample (last write wins) and
    synchronously recomputes geofence membership. Callers take a snapshot at
    the moment of an action instead of reading live fields.
    """

    def __init__(
        self,
        sensor: PositioningSensor,
        geofences: Iterable[Geofence] = (),
        *,
        request_timeout: float = DEFAULT_LOCATION_TIMEOUT_SECONDS,
        max_age: float = DEFAULT_LOCATION_MAX_AGE_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sensor = sensor
        self._request_timeout = float(request_timeout)
        self._max_age = float(max_age)
        self._clock = clock

        self._subscription_lock = threading.Lock()
        self._handle: Optional[int] = None

        self._state_lock = threading.Lock()
        self._geofences: Tuple[Geofence, ...] = tuple(geofences)
        self._sample: Optional[LocationSample] = None
        self._inside = False
        self._last_error: Optional[LocationErrorCode] = None

    @property
    def sensor(self) -> PositioningSensor:
        return self._sensor

    @property
    def is_tracking(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        with self._subscription_lock:
            if self._handle is not None:
                return
            self._handle = self._sensor.watch_location(self._on_update, self._on_error)
        logger.debug("Location tracking started")

    def stop(self) -> None:
        with self._subscription_lock:
            handle, self._handle = self._handle, None
        if handle is None:
            return
        self._sensor.unsubscribe(handle)
        logger.debug("Location tracking stopped")

    def set_geofences(self, geofences: Iterable[Geofence]) -> None:
        with self._state_lock:
            self._geofences = tuple(geofences)
            if self._sample is not None:
                self._inside = is_inside_any_geofence(self._sample, self._geofences)

    def snapshot(self) -> TrackerSnapshot:
        with self._state_lock:
            return TrackerSnapshot(
                sample=self._sample,
                inside_geofence=self._inside,
                last_error=self._last_error,
                is_tracking=self.is_tracking,
            )

    def fresh_sample(self) -> Optional[LocationSample]:
        """Last sample, or None once it is older than `max_age` seconds."""

        with self._state_lock:
            sample = self._sample
        if sample is None:
            return None
        if (self._clock() - sample.timestamp).total_seconds() > self._max_age:
            logger.debug("Discarding stale location sample from %s", sample.timestamp.isoformat())
            return None
        return sample

    def request_current_location(self) -> LocationSample:
        """One-shot fix bounded by `request_timeout`.

        Raises LocationUnavailable on sensor errors and on timeout.
        """

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="location-request")
        try:
            future = executor.submit(self._sensor.get_current_location, timeout=self._request_timeout)
            sample = future.result(timeout=self._request_timeout)
        except FutureTimeout:
            self._on_error(LocationErrorCode.TIMEOUT)
            raise LocationUnavailable(location_error_message(LocationErrorCode.TIMEOUT)) from None
        except LocationError as e:
            self._on_error(e.code)
            raise LocationUnavailable(location_error_message(e.code)) from e
        finally:
            executor.shutdown(wait=False)

        self._on_update(sample)
        return sample

    def _on_update(self, sample: LocationSample) -> None:
        with self._state_lock:
            self._sample = sample
            self._inside = is_inside_any_geofence(sample, self._geofences)
            self._last_error = None

    def _on_error(self, code: LocationErrorCode) -> None:
        logger.warning("Location error: %s", code.value)
        with self._state_lock:
            self._last_error = code


class TrackerRegistry:
    """One tracker per signed-in user, created on first use.

    Trackers nobody has touched for `idle_timeout` seconds are stopped and
    dropped the next time any tracker is looked up.
    """

    def __init__(
        self,
        sensor_factory: Callable[[], PositioningSensor],
        geofences_provider: Callable[[], Sequence[Geofence]],
        *,
        request_timeout: float = DEFAULT_LOCATION_TIMEOUT_SECONDS,
        max_age: float = DEFAULT_LOCATION_MAX_AGE_SECONDS,
        idle_timeout: float = DEFAULT_LOCATION_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sensor_factory = sensor_factory
        self._geofences_provider = geofences_provider
        self._request_timeout = request_timeout
        self._max_age = max_age
        self._idle_timeout = float(idle_timeout)
        self._clock = clock
        self._lock = threading.Lock()
        self._trackers: Dict[str, LocationTracker] = {}
        self._last_used: Dict[str, float] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)

    def get(self, user_id: str) -> LocationTracker:
        now = self._clock()
        with self._lock:
            idle = self._pop_idle(now, keep=user_id)
            tracker = self._trackers.get(user_id)
            if tracker is None:
                tracker = LocationTracker(
                    self._sensor_factory(),
                    self._geofences_provider(),
                    request_timeout=self._request_timeout,
                    max_age=self._max_age,
                )
                self._trackers[user_id] = tracker
            self._last_used[user_id] = now

        for evicted_id, evicted in idle:
            evicted.stop()
            logger.info("Evicted idle location tracker for user %s", evicted_id)
        return tracker

    def refresh_geofences(self) -> None:
        """Recompute membership for every tracker after the geofence set changed."""

        geofences = self._geofences_provider()
        with self._lock:
            trackers = list(self._trackers.values())
        for tracker in trackers:
            tracker.set_geofences(geofences)

    def discard(self, user_id: str) -> None:
        with self._lock:
            tracker = self._trackers.pop(user_id, None)
            self._last_used.pop(user_id, None)
        if tracker is not None:
            tracker.stop()

    def _pop_idle(self, now: float, *, keep: str) -> List[Tuple[str, LocationTracker]]:
        # Caller holds self._lock.
        idle_ids = [
            uid for uid, last in self._last_used.items()
            if uid != keep and now - last > self._idle_timeout
        ]
        popped = []
        for uid in idle_ids:
            self._last_used.pop(uid, None)
            tracker = self._trackers.pop(uid, None)
            if tracker is not None:
                popped.append((uid, tracker))
        return popped
