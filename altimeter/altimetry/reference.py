"""
Reference model - the user-settable altimeter references.

Holds QNH, the "zero altitude" start point and the maximum-altitude
ceiling. The ceiling is always stored in the QNE frame so that it stays
anchored to the same real-world pressure level when QNH changes; the
start-relative form is derived on demand for display.

Known limitation (kept on purpose): set_qnh() does not rebase the zero
offset, so changing QNH after setting a start point changes the real
altitude that "zero" refers to.
"""

import logging
import math
from typing import Callable, Optional

from altimeter.altimetry.barometric import (
    ALTITUDE_SCALE_M,
    QNE_HPA,
    convert_altitude_frame,
    pressure_to_altitude_m,
)

logger = logging.getLogger(__name__)

QNH_MAX_HPA = 1200.0


class ReferenceValueError(ValueError):
    """A reference value was rejected; the previous value is retained."""


def parse_decimal_entry(text: Optional[str]) -> Optional[float]:
    """
    Parse a user-typed number, accepting ',' as decimal separator.

    Returns None for empty, non-numeric or non-finite input.
    """
    if text is None:
        return None
    normalized = str(text).strip().replace(',', '.')
    if not normalized:
        return None
    try:
        value = float(normalized)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class ReferenceModel:
    """
    Process-wide altimeter references.

    Mutated only by explicit user actions or by loading persisted
    preferences. Every mutation is reported to the change listener, which
    the preference store uses to write through.
    """

    def __init__(
        self,
        qnh_hpa: float = QNE_HPA,
        zero_altitude_offset_m: float = 0.0,
        start_point_pressure_hpa: Optional[float] = None,
        max_altitude_qne_m: Optional[float] = None,
        on_change: Optional[Callable[['ReferenceModel'], None]] = None,
    ):
        self.qnh_hpa = qnh_hpa
        self.zero_altitude_offset_m = zero_altitude_offset_m
        self.start_point_pressure_hpa = start_point_pressure_hpa
        self.max_altitude_qne_m = max_altitude_qne_m
        self._on_change = on_change

    def __repr__(self) -> str:
        return (
            f'<ReferenceModel qnh={self.qnh_hpa:.2f}hPa '
            f'zero={self.zero_altitude_offset_m:.1f}m '
            f'ceiling={self.max_altitude_qne_m}>'
        )

    def set_change_listener(self, listener: Optional[Callable[['ReferenceModel'], None]]) -> None:
        self._on_change = listener

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def set_qnh(self, value: float) -> None:
        """Set the sea-level reference. Zero offset and ceiling are not rebased."""
        if not 0 < value < QNH_MAX_HPA:
            raise ReferenceValueError(f'QNH must be between 0 and {QNH_MAX_HPA:.0f} hPa, got {value}')
        self.qnh_hpa = float(value)
        logger.info(f'QNH set to {self.qnh_hpa:.2f} hPa')
        self._changed()

    def set_zero_altitude(self, current_altitude_qnh_frame: float, current_pressure_kpa: float) -> None:
        """Make the current position the start point ("altitude from start" = 0)."""
        self.zero_altitude_offset_m = float(current_altitude_qnh_frame)
        if current_pressure_kpa > 0:
            self.start_point_pressure_hpa = current_pressure_kpa * 10.0
        else:
            self.start_point_pressure_hpa = None
        logger.info(
            f'Zero altitude set at {self.zero_altitude_offset_m:.1f}m '
            f'(start pressure {self.start_point_pressure_hpa})'
        )
        self._changed()

    def clear_zero_altitude(self) -> None:
        """Go back to altitude above the QNH reference."""
        self.zero_altitude_offset_m = 0.0
        self.start_point_pressure_hpa = None
        self._changed()

    def set_max_altitude_from_qne(self, meters: float) -> None:
        """Set the ceiling in the QNE frame. Non-positive means no ceiling."""
        self.max_altitude_qne_m = float(meters) if meters > 0 else None
        self._changed()

    def clear_max_altitude(self) -> None:
        self.max_altitude_qne_m = None
        self._changed()

    def set_max_altitude_from_start(self, meters_above_start: float) -> None:
        """
        Set the ceiling as a height above the start point.

        start pressure -> start altitude (QNH) -> + height -> pressure (QNH)
        -> altitude (QNE). The stored value no longer depends on QNH.
        """
        if self.start_point_pressure_hpa is None:
            raise ReferenceValueError('No start point set')
        if meters_above_start <= 0:
            self.clear_max_altitude()
            return

        start_altitude_m = pressure_to_altitude_m(self.start_point_pressure_hpa / 10.0, self.qnh_hpa)
        target_altitude_m = start_altitude_m + meters_above_start
        if target_altitude_m >= ALTITUDE_SCALE_M:
            raise ReferenceValueError(f'Ceiling {target_altitude_m:.0f}m is outside the barometric model')

        self.max_altitude_qne_m = convert_altitude_frame(target_altitude_m, self.qnh_hpa, QNE_HPA)
        self._changed()

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def has_start_point(self) -> bool:
        """True while "altitude from start" is meaningful."""
        return self.start_point_pressure_hpa is not None and self.zero_altitude_offset_m != 0

    def current_max_from_start_m(self) -> Optional[float]:
        """Ceiling re-expressed as height above the start point, for display."""
        if self.start_point_pressure_hpa is None or self.max_altitude_qne_m is None:
            return None
        ceiling_altitude_m = convert_altitude_frame(self.max_altitude_qne_m, QNE_HPA, self.qnh_hpa)
        start_altitude_m = pressure_to_altitude_m(self.start_point_pressure_hpa / 10.0, self.qnh_hpa)
        return ceiling_altitude_m - start_altitude_m

    def is_over_ceiling(self, current_altitude_qne_m: float) -> bool:
        if self.max_altitude_qne_m is None:
            return False
        return current_altitude_qne_m > self.max_altitude_qne_m

    def to_dict(self) -> dict:
        return {
            'qnh_hpa': self.qnh_hpa,
            'zero_altitude_offset_m': self.zero_altitude_offset_m,
            'start_point_pressure_hpa': self.start_point_pressure_hpa,
            'max_altitude_qne_m': self.max_altitude_qne_m,
        }
