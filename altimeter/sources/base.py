"""
Interfaces to the sensor layer.

Pressure and location hardware live outside this package. The core only
sees typed samples pushed through a single-consumer subscription;
cancelling the subscription is how a consumer stops delivery.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


@dataclass(frozen=True)
class PressureSample:
    """One barometer reading."""
    pressure_kpa: float
    timestamp: float  # Unix seconds

    @property
    def is_valid(self) -> bool:
        """Non-positive pressure means the sensor had no reading."""
        return self.pressure_kpa > 0


@dataclass(frozen=True)
class LocationFix:
    """
    One location update. Every field is independently optional.

    Accuracies follow the platform convention: a negative value marks the
    matching measurement as invalid.
    """
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    horizontal_accuracy: Optional[float] = None
    vertical_accuracy: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        if self.latitude is None or self.longitude is None:
            return False
        return self.horizontal_accuracy is None or self.horizontal_accuracy >= 0


class AuthorizationStatus(str, Enum):
    """Location permission as reported by the host."""
    GRANTED = 'granted'
    DENIED = 'denied'
    RESTRICTED = 'restricted'
    UNDETERMINED = 'undetermined'


class Subscription:
    """Handle returned by subscribe(); cancel() stops delivery."""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._on_cancel()


class SensorSource(ABC):
    """Delivers PressureSample objects at roughly 1 Hz."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Capability flag, checked once at startup."""

    @abstractmethod
    def subscribe(
        self,
        on_sample: Callable[[PressureSample], None],
        on_error: Optional[Callable[[str], None]] = None,
    ) -> Subscription:
        """Start delivery to a single consumer."""


class LocationSource(ABC):
    """Delivers LocationFix objects while started."""

    @property
    @abstractmethod
    def authorization(self) -> AuthorizationStatus:
        """Current permission state."""

    @abstractmethod
    def start(self) -> None:
        """Begin location updates (may prompt for permission)."""

    @abstractmethod
    def stop(self) -> None:
        """End location updates."""

    @abstractmethod
    def subscribe(
        self,
        on_fix: Callable[[LocationFix], None],
        on_authorization: Optional[Callable[[AuthorizationStatus], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> Subscription:
        """Start delivery to a single consumer."""
