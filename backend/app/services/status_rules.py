# Overview: Pure status rules for stock counts and temperature readings.

from __future__ import annotations

import math
from numbers import Real


STATUS_OUT_OF_STOCK = "out_of_stock"
STATUS_NEED_STOCK = "need_stock"
STATUS_IN_STOCK = "in_stock"

# Display badges used by admin views and exports
STATUS_BADGES = {
    STATUS_OUT_OF_STOCK: "OUT",
    STATUS_NEED_STOCK: "LOW",
    STATUS_IN_STOCK: "OK",
}

# OUT first, then LOW, then OK
STATUS_RANK = {
    STATUS_OUT_OF_STOCK: 0,
    STATUS_NEED_STOCK: 1,
    STATUS_IN_STOCK: 2,
}

TEMP_TAG_HIGH = "HIGH"
TEMP_TAG_LOW = "LOW"
TEMP_TAG_OK = "OK"


def is_number(value) -> bool:
    """Real, finite, and not a bool."""
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def stock_status(quantity, threshold=None) -> str:
    """
    OUT at zero, LOW at or under a numeric threshold, else OK.

    quantity must already be validated (finite, >= 0).
    """
    if quantity == 0:
        return STATUS_OUT_OF_STOCK
    if is_number(threshold) and quantity <= threshold:
        return STATUS_NEED_STOCK
    return STATUS_IN_STOCK


def temperature_in_range(temp, min_temp, max_temp) -> bool:
    """True iff temp is numeric and min <= temp <= max."""
    if not is_number(temp):
        return False
    return min_temp <= temp <= max_temp


def is_out_of_range(temp, min_temp, max_temp) -> bool:
    """
    Out-of-range needs a numeric reading; a missing reading is "cannot
    evaluate", which is not out of range.
    """
    if not is_number(temp):
        return False
    return not temperature_in_range(temp, min_temp, max_temp)


def temperature_tag(temp, min_temp=None, max_temp=None) -> str:
    if is_number(temp) and is_number(max_temp) and temp > max_temp:
        return TEMP_TAG_HIGH
    if is_number(temp) and is_number(min_temp) and temp < min_temp:
        return TEMP_TAG_LOW
    return TEMP_TAG_OK


def status_badge(status: str | None) -> str:
    return STATUS_BADGES.get(status, "OK")
