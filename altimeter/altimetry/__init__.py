"""
Altimetry module.

Barometric altitude computation, the user-settable references (QNH,
start point, ceiling) and vertical speed estimation.
"""

from altimeter.altimetry.altimeter import Altimeter, AltimeterReading
from altimeter.altimetry.barometric import (
    QNE_HPA,
    altitude_to_pressure_kpa,
    convert_altitude_frame,
    pressure_to_altitude_m,
)
from altimeter.altimetry.preferences import PreferenceStore
from altimeter.altimetry.reference import (
    ReferenceModel,
    ReferenceValueError,
    parse_decimal_entry,
)
from altimeter.altimetry.vertical_speed import VerticalSpeedEstimator

__all__ = [
    'Altimeter',
    'AltimeterReading',
    'PreferenceStore',
    'QNE_HPA',
    'ReferenceModel',
    'ReferenceValueError',
    'VerticalSpeedEstimator',
    'altitude_to_pressure_kpa',
    'convert_altitude_frame',
    'pressure_to_altitude_m',
    'parse_decimal_entry',
]
