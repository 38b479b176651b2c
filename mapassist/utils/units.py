"""Length unit conversion. Internal distances are always meters."""

UNIT_TO_M = {
    "m": 1.0,
    "km": 1000.0,
    "ft": 0.3048,
    "yd": 0.9144,
    "mi": 1609.344,
}

VALID_UNITS = set(UNIT_TO_M.keys())


def to_meters(value: float, unit: str) -> float:
    """Convert a value from the given unit to meters."""
    if unit not in UNIT_TO_M:
        raise ValueError(f"Unknown unit '{unit}'. Valid: {sorted(VALID_UNITS)}")
    return value * UNIT_TO_M[unit]


def from_meters(value: float, unit: str) -> float:
    """Convert a value from meters to the given unit."""
    if unit not in UNIT_TO_M:
        raise ValueError(f"Unknown unit '{unit}'. Valid: {sorted(VALID_UNITS)}")
    return value / UNIT_TO_M[unit]

