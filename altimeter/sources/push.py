"""
In-process sources fed by the host.

The host edge (HTTP handlers, a device bridge, or tests) pushes samples
into these; they forward to whoever holds the subscription.
"""

import logging
import threading
from typing import Callable, Optional

from altimeter.sources.base import (
    AuthorizationStatus,
    LocationFix,
    LocationSource,
    PressureSample,
    SensorSource,
    Subscription,
)

logger = logging.getLogger(__name__)


class PushSensorSource(SensorSource):
    """Barometer source whose samples are pushed in from outside."""

    def __init__(self, available: bool = True):
        self._available = available
        self._lock = threading.Lock()
        self._on_sample: Optional[Callable[[PressureSample], None]] = None
        self._on_error: Optional[Callable[[str], None]] = None

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def has_subscriber(self) -> bool:
        return self._on_sample is not None

    def subscribe(self, on_sample, on_error=None) -> Subscription:
        with self._lock:
            if self._on_sample is not None:
                raise RuntimeError('Sensor source already has a subscriber')
            self._on_sample = on_sample
            self._on_error = on_error
        return Subscription(self._unsubscribe)

    def _unsubscribe(self) -> None:
        with self._lock:
            self._on_sample = None
            self._on_error = None

    def push(self, sample: PressureSample) -> bool:
        """Deliver a sample. Returns False when nobody is listening."""
        with self._lock:
            callback = self._on_sample
        if callback is None or not self._available:
            return False
        callback(sample)
        return True

    def report_error(self, message: str) -> None:
        """Transient error side channel; delivery continues afterwards."""
        with self._lock:
            callback = self._on_error
        logger.warning(f'Sensor error: {message}')
        if callback is not None:
            callback(message)


class PushLocationSource(LocationSource):
    """Location source whose fixes are pushed in from outside."""

    def __init__(self, authorization: AuthorizationStatus = AuthorizationStatus.UNDETERMINED):
        self._authorization = authorization
        self._started = False
        self._lock = threading.Lock()
        self._on_fix: Optional[Callable[[LocationFix], None]] = None
        self._on_authorization: Optional[Callable[[AuthorizationStatus], None]] = None
        self._on_error: Optional[Callable[[str], None]] = None

    @property
    def authorization(self) -> AuthorizationStatus:
        return self._authorization

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._started = True

    def stop(self) -> None:
        self._started = False

    def subscribe(self, on_fix, on_authorization=None, on_error=None) -> Subscription:
        with self._lock:
            if self._on_fix is not None:
                raise RuntimeError('Location source already has a subscriber')
            self._on_fix = on_fix
            self._on_authorization = on_authorization
            self._on_error = on_error
        return Subscription(self._unsubscribe)

    def _unsubscribe(self) -> None:
        with self._lock:
            self._on_fix = None
            self._on_authorization = None
            self._on_error = None

    def push(self, fix: LocationFix) -> bool:
        """Deliver a fix. Dropped while stopped or not authorized."""
        with self._lock:
            callback = self._on_fix
        if callback is None or not self._started:
            return False
        if self._authorization != AuthorizationStatus.GRANTED:
            return False
        callback(fix)
        return True

    def set_authorization(self, status: AuthorizationStatus) -> None:
        self._authorization = status
        with self._lock:
            callback = self._on_authorization
        if callback is not None:
            callback(status)

    def report_error(self, message: str) -> None:
        with self._lock:
            callback = self._on_error
        logger.warning(f'Location error: {message}')
        if callback is not None:
            callback(message)
