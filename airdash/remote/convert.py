"""Conversions from provider-specific scales to the dashboard's scales."""

from decimal import ROUND_HALF_UP, Decimal

from airdash.lib.config.constants import AQI_CATEGORY_BOUNDS, SEVERITY_INDEX_BANDS
from airdash.lib.config.enums import AqiCategory

# Returned for any severity level outside the known bands
UNKNOWN_INDEX = 0


def normalize_air_quality_index(raw_level: int) -> int:
    """Map a 1-6 provider severity level onto the 0-500 index scale.

    Each level maps to the upper bound of its band. Anything that is not
    an integer in 1..6 (0, negatives, 7+, bools, floats) maps to 0.
    """
    if isinstance(raw_level, bool) or not isinstance(raw_level, int):
        return UNKNOWN_INDEX
    if raw_level not in SEVERITY_INDEX_BANDS:
        return UNKNOWN_INDEX
    return SEVERITY_INDEX_BANDS[raw_level]


def aqi_category(index: int) -> AqiCategory:
    """Get the category band a normalized index falls in."""
    for upper, category in AQI_CATEGORY_BOUNDS:
        if index <= upper:
            return category
    return AqiCategory.HAZARDOUS


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(72.5) == 72), which
    reads wrong on a temperature display. Decimal(value) is the exact
    binary value, so 0.49999999999999994 still rounds down.
    """
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))
