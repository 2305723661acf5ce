"""
Altimeter - turns pressure samples into the displayed altitude values.

Combines the ReferenceModel (QNH, zero point, ceiling) with the
barometric formula and the vertical speed estimator. Readers such as the
recorder take an AltimeterReading snapshot; a 1 Hz consumer tolerates a
snapshot that mixes values from just before and just after an update.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from altimeter.altimetry.barometric import QNE_HPA, pressure_to_altitude_m
from altimeter.altimetry.reference import ReferenceModel
from altimeter.altimetry.vertical_speed import VerticalSpeedEstimator
from altimeter.sources.base import PressureSample, SensorSource, Subscription

logger = logging.getLogger(__name__)

SENSOR_UNAVAILABLE_MESSAGE = 'Barometer not available on this device'


@dataclass(frozen=True)
class AltimeterReading:
    """Point-in-time view of the instrument."""
    pressure_kpa: float
    qnh_hpa: float
    altitude_from_barometer_m: float  # above QNH reference
    altitude_display_m: float         # relative to the zero point
    altitude_qne_m: float             # above the standard 1013.25 hPa level
    vertical_speed_ms: float
    has_reading: bool
    has_start_point: bool
    is_over_ceiling: bool
    timestamp: Optional[float] = None

    @property
    def pressure_hpa(self) -> Optional[float]:
        if self.pressure_kpa <= 0:
            return None
        return self.pressure_kpa * 10.0

    @property
    def altitude_from_start_m(self) -> Optional[float]:
        """Altitude above the start point, only while one is set."""
        return self.altitude_display_m if self.has_start_point else None

    def to_dict(self) -> dict:
        return {
            'pressure_kpa': self.pressure_kpa if self.has_reading else None,
            'pressure_hpa': self.pressure_hpa,
            'qnh_hpa': self.qnh_hpa,
            'altitude_from_barometer_m': self.altitude_from_barometer_m,
            'altitude_display_m': self.altitude_display_m,
            'altitude_from_start_m': self.altitude_from_start_m,
            'altitude_qne_m': self.altitude_qne_m,
            'vertical_speed_ms': self.vertical_speed_ms,
            'is_over_ceiling': self.is_over_ceiling,
            'timestamp': self.timestamp,
        }


class Altimeter:
    """
    Live barometric altitude and vertical speed.

    Sensor availability is checked once in start_updates(). An unavailable
    sensor leaves a persistent error message and all values at zero; a
    transient error sets a dismissible message and delivery continues.
    """

    def __init__(
        self,
        reference: ReferenceModel,
        estimator: Optional[VerticalSpeedEstimator] = None,
    ):
        self.reference = reference
        self.estimator = estimator or VerticalSpeedEstimator()

        self._lock = threading.RLock()
        self._subscription: Optional[Subscription] = None

        self.pressure_kpa: float = 0.0
        self.altitude_from_barometer_m: float = 0.0
        self.altitude_display_m: float = 0.0
        self.last_sample_time: Optional[float] = None

        self.is_available: bool = False
        self.error_message: Optional[str] = None
        self._error_is_persistent = False

    # -------------------------------------------------------------------------
    # Sensor lifecycle
    # -------------------------------------------------------------------------

    def start_updates(self, source: SensorSource) -> bool:
        """Subscribe to the sensor. Returns False if it is unavailable."""
        self.is_available = source.is_available
        if not self.is_available:
            self.error_message = SENSOR_UNAVAILABLE_MESSAGE
            self._error_is_persistent = True
            logger.warning('Barometer unavailable, altitude will not update')
            return False

        self.stop_updates()
        self.error_message = None
        self._error_is_persistent = False
        with self._lock:
            self.estimator.reset()

        self._subscription = source.subscribe(self.on_sample, self.on_sensor_error)
        logger.info('Barometer updates started')
        return True

    def stop_updates(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def on_sensor_error(self, message: str) -> None:
        if not self._error_is_persistent:
            self.error_message = message

    def dismiss_error(self) -> None:
        """Clear a transient error. The unavailable notice stays."""
        if not self._error_is_persistent:
            self.error_message = None

    # -------------------------------------------------------------------------
    # Sample handling
    # -------------------------------------------------------------------------

    def on_sample(self, sample: PressureSample) -> None:
        if not sample.is_valid:
            logger.debug(f'Ignoring non-positive pressure sample {sample.pressure_kpa}')
            return

        with self._lock:
            self.pressure_kpa = sample.pressure_kpa
            self.last_sample_time = sample.timestamp
            self._recompute()
            self.estimator.update(self.altitude_from_barometer_m, now=sample.timestamp)

    def _recompute(self) -> None:
        self.altitude_from_barometer_m = pressure_to_altitude_m(self.pressure_kpa, self.reference.qnh_hpa)
        self.altitude_display_m = self.altitude_from_barometer_m - self.reference.zero_altitude_offset_m

    def refresh(self) -> None:
        """Recompute derived altitudes after a reference change."""
        with self._lock:
            self._recompute()

    @property
    def has_reading(self) -> bool:
        return self.pressure_kpa > 0

    @property
    def altitude_qne_m(self) -> float:
        return pressure_to_altitude_m(self.pressure_kpa, QNE_HPA)

    @property
    def vertical_speed_ms(self) -> float:
        return self.estimator.vertical_speed_ms

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    def set_qnh(self, qnh_hpa: float) -> None:
        self.reference.set_qnh(qnh_hpa)
        self.refresh()

    def set_zero_altitude(self) -> None:
        """Make the current altitude the start point."""
        with self._lock:
            self.reference.set_zero_altitude(self.altitude_from_barometer_m, self.pressure_kpa)
            self._recompute()

    def clear_zero_altitude(self) -> None:
        with self._lock:
            self.reference.clear_zero_altitude()
            self._recompute()

    def is_over_ceiling(self) -> bool:
        if not self.has_reading:
            return False
        return self.reference.is_over_ceiling(self.altitude_qne_m)

    def reading(self) -> AltimeterReading:
        with self._lock:
            return AltimeterReading(
                pressure_kpa=self.pressure_kpa,
                qnh_hpa=self.reference.qnh_hpa,
                altitude_from_barometer_m=self.altitude_from_barometer_m,
                altitude_display_m=self.altitude_display_m,
                altitude_qne_m=self.altitude_qne_m,
                vertical_speed_ms=self.vertical_speed_ms,
                has_reading=self.has_reading,
                has_start_point=self.reference.has_start_point,
                is_over_ceiling=self.is_over_ceiling(),
                timestamp=self.last_sample_time,
            )
