"""
Pressure/altitude conversion.

ICAO barometric formula restricted to the troposphere. No temperature
lapse correction is applied, so results are the standard-atmosphere
approximation of the true altitude.

Units:
    pressure  - kPa (what the sensor reports)
    reference - hPa (what pilots dial in as QNH)
    altitude  - meters
"""

# Standard pressure reference (QNE), hPa
QNE_HPA = 1013.25

# Altitude at which the model's pressure ratio reaches zero
ALTITUDE_SCALE_M = 44330.77

PRESSURE_EXPONENT = 0.19026

# Exact reciprocal of PRESSURE_EXPONENT (~5.2560, usually quoted as 5.255)
ALTITUDE_EXPONENT = 1.0 / PRESSURE_EXPONENT


def pressure_to_altitude_m(pressure_kpa: float, qnh_hpa: float) -> float:
    """
    Convert static pressure to altitude above the QNH reference.

    Returns 0 when either input is non-positive (no reading / no reference).
    """
    if pressure_kpa <= 0 or qnh_hpa <= 0:
        return 0.0
    p0_kpa = qnh_hpa / 10.0
    return ALTITUDE_SCALE_M * (1.0 - (pressure_kpa / p0_kpa) ** PRESSURE_EXPONENT)


def altitude_to_pressure_kpa(altitude_m: float, qnh_hpa: float) -> float:
    """
    Inverse of pressure_to_altitude_m.

    Returns 0 when the reference is non-positive or the altitude is at or
    above the model's validity ceiling (~44,331 m).
    """
    if qnh_hpa <= 0:
        return 0.0
    ratio = 1.0 - altitude_m / ALTITUDE_SCALE_M
    if ratio <= 0:
        return 0.0
    p0_kpa = qnh_hpa / 10.0
    return p0_kpa * ratio ** ALTITUDE_EXPONENT


def convert_altitude_frame(altitude_m: float, from_qnh_hpa: float, to_qnh_hpa: float) -> float:
    """
    Re-express an altitude measured against one reference in another.

    Goes through the pressure the altitude corresponds to, so a QNH-frame
    altitude can be stored in the QNE frame and back.
    """
    pressure_kpa = altitude_to_pressure_kpa(altitude_m, from_qnh_hpa)
    return pressure_to_altitude_m(pressure_kpa, to_qnh_hpa)
