"""
PM2.5 to AQI conversion.

Piecewise-linear interpolation over the US EPA PM2.5 breakpoint table.
Concentrations are truncated (not rounded) to one decimal place before a
segment is chosen. Stateless and total: every input maps to 0..500.
"""

import math
from typing import NamedTuple

AQI_MIN = 0
AQI_MAX = 500


class Breakpoint(NamedTuple):
    upper: float      # exclusive upper concentration bound for this segment
    conc_lo: float    # μg/m³
    conc_hi: float    # μg/m³
    aqi_lo: int
    aqi_hi: int


PM25_BREAKPOINTS = (
    Breakpoint(12.1,  0.0,   12.0,  0,   50),
    Breakpoint(35.5,  12.1,  35.4,  51,  100),
    Breakpoint(55.5,  35.5,  55.4,  101, 150),
    Breakpoint(150.5, 55.5,  150.4, 151, 200),
    Breakpoint(250.5, 150.5, 250.4, 201, 300),
    Breakpoint(350.5, 250.5, 350.4, 301, 400),
    Breakpoint(500.5, 350.5, 500.4, 401, 500),
)


def round_half_away(x: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def _lerp(ylo: float, yhi: float, xlo: float, xhi: float, x: float) -> float:
    return ((x - xlo) / (xhi - xlo)) * (yhi - ylo) + ylo


def pm25_to_aqi(pm25: float) -> int:
    """
    Convert a PM2.5 concentration (μg/m³) to an AQI value.

    Negative concentrations clamp to 0; anything at or beyond 500.5 is
    beyond the index and clamps to 500. NaN maps to 0 and infinities clamp to the matching end of the scale.
    """
    if math.isnan(pm25):
        return AQI_MIN
    if math.isinf(pm25):
        return AQI_MAX if pm25 > 0 else AQI_MIN
    c = math.floor(10.0 * pm25) / 10.0
    if c < 0:
        return AQI_MIN
    for bp in PM25_BREAKPOINTS:
        if c < bp.upper:
            return round_half_away(_lerp(bp.aqi_lo, bp.aqi_hi, bp.conc_lo, bp.conc_hi, c))
    return AQI_MAX
