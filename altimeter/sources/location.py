"""
Location tracker - last known GPS values for the recorder.

Keeps only what the recorder needs (altitude, speed, coordinates) and
never substitutes zero for a missing value. While recording mode is on,
every accepted fix also raises a "point ready" signal, rate-limited so
the recorder gets at most one extra tick per second from GPS.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from altimeter.sources.base import (
    AuthorizationStatus,
    LocationFix,
    LocationSource,
    Subscription,
)

logger = logging.getLogger(__name__)

POINT_READY_MIN_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class LocationSnapshot:
    """GPS values as seen at one instant."""
    altitude_m: Optional[float]
    speed_ms: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]


class LocationTracker:
    """Consumes a LocationSource and keeps the last valid values."""

    def __init__(
        self,
        source: LocationSource,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self._clock = clock
        self._lock = threading.RLock()

        self.gps_altitude_m: Optional[float] = None
        self.gps_speed_ms: Optional[float] = None
        self.latitude: Optional[float] = None
        self.longitude: Optional[float] = None

        self.error_message: Optional[str] = None
        self._recording_mode = False
        self._last_point_ready: Optional[float] = None
        self._point_ready_callbacks: List[Callable[[], None]] = []

        self._subscription: Optional[Subscription] = None
        self._active = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    def start_updates(self) -> None:
        """Subscribe and start the underlying source."""
        if self._subscription is None:
            self._subscription = self.source.subscribe(
                self._on_fix,
                on_authorization=self.update_authorization,
                on_error=self._on_error,
            )
        self.update_authorization(self.source.authorization)
        self.source.start()
        self._active = True
        logger.info('Location updates started')

    def stop_updates(self) -> None:
        """Stop the source and forget GPS values."""
        self.source.stop()
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        with self._lock:
            self._clear_values()
        self._active = False
        logger.info('Location updates stopped')

    # -------------------------------------------------------------------------
    # Recording mode
    # -------------------------------------------------------------------------

    @property
    def recording_mode(self) -> bool:
        return self._recording_mode

    @recording_mode.setter
    def recording_mode(self, enabled: bool) -> None:
        self._recording_mode = enabled
        self._last_point_ready = None

    def add_point_ready_callback(self, callback: Callable[[], None]) -> None:
        self._point_ready_callbacks.append(callback)

    def remove_point_ready_callback(self, callback: Callable[[], None]) -> None:
        if callback in self._point_ready_callbacks:
            self._point_ready_callbacks.remove(callback)

    # -------------------------------------------------------------------------
    # Source callbacks
    # -------------------------------------------------------------------------

    def _clear_values(self) -> None:
        self.gps_altitude_m = None
        self.gps_speed_ms = None
        self.latitude = None
        self.longitude = None

    def _on_fix(self, fix: LocationFix) -> None:
        with self._lock:
            if fix.altitude is not None and (fix.vertical_accuracy is None or fix.vertical_accuracy >= 0):
                self.gps_altitude_m = fix.altitude
            if fix.speed is not None and fix.speed >= 0:
                self.gps_speed_ms = fix.speed
            if fix.has_coordinates:
                self.latitude = fix.latitude
                self.longitude = fix.longitude

        if self._recording_mode:
            self._emit_point_ready()

    def _emit_point_ready(self) -> None:
        now = self._clock()
        if self._last_point_ready is not None and now - self._last_point_ready < POINT_READY_MIN_INTERVAL_SECONDS:
            return
        self._last_point_ready = now

        for callback in list(self._point_ready_callbacks):
            try:
                callback()
            except Exception as e:
                logger.error(f'Point-ready callback error: {e}')

    def update_authorization(self, status: AuthorizationStatus) -> None:
        """Denied or restricted access clears values; they stay absent, never zero."""
        if status == AuthorizationStatus.GRANTED:
            self.error_message = None
        elif status == AuthorizationStatus.DENIED:
            self.error_message = 'Location access denied'
            with self._lock:
                self._clear_values()
        elif status == AuthorizationStatus.RESTRICTED:
            self.error_message = 'Location unavailable'
            with self._lock:
                self._clear_values()

    def _on_error(self, message: str) -> None:
        self.error_message = message

    def snapshot(self) -> LocationSnapshot:
        with self._lock:
            return LocationSnapshot(
                altitude_m=self.gps_altitude_m,
                speed_ms=self.gps_speed_ms,
                latitude=self.latitude,
                longitude=self.longitude,
            )
