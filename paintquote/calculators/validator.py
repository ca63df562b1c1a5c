"""
Measurement sanity checks.

Advisory only: callers decide whether to surface warnings or refuse to save.
Nothing here stops the calculator from running.
"""

from .types import ProjectMeasurements, ValidationResult

# Warning thresholds (sqft)
MAX_WALLS_SQFT = 10000
MAX_CEILINGS_SQFT = 5000
MAX_TRIM_SQFT = 2000
MIN_WALLS_SQFT = 50

# Allowed divergence between room sums and the project totals
ROOM_SUM_TOLERANCE = 0.10

_LABELS = {
    "walls": ("total_walls_sqft", "walls_square_footage"),
    "ceilings": ("total_ceilings_sqft", "ceilings_square_footage"),
    "trim": ("total_trim_sqft", "trim_square_footage"),
}


def validate_measurements(measurements: ProjectMeasurements) -> ValidationResult:
    errors = []
    warnings = []

    walls = measurements.total_walls_sqft
    ceilings = measurements.total_ceilings_sqft
    trim = measurements.total_trim_sqft

    if walls < 0:
        errors.append("Wall square footage cannot be negative")
    if ceilings < 0:
        errors.append("Ceiling square footage cannot be negative")
    if trim < 0:
        errors.append("Trim square footage cannot be negative")

    if walls > MAX_WALLS_SQFT:
        warnings.append(f"Wall square footage seems unusually large ({walls:,.0f} sqft)")
    if ceilings > MAX_CEILINGS_SQFT:
        warnings.append(f"Ceiling square footage seems unusually large ({ceilings:,.0f} sqft)")
    if trim > MAX_TRIM_SQFT:
        warnings.append(f"Trim square footage seems unusually large ({trim:,.0f} sqft)")
    if walls < MIN_WALLS_SQFT:
        warnings.append(f"Wall square footage seems unusually small ({walls:,.0f} sqft)")

    if measurements.rooms:
        for surface, (total_attr, room_attr) in _LABELS.items():
            total = getattr(measurements, total_attr)
            if total == 0:
                continue
            room_sum = sum(getattr(r, room_attr) for r in measurements.rooms)
            if abs(room_sum - total) > abs(total) * ROOM_SUM_TOLERANCE:
                warnings.append(
                    f"Room {surface} total ({room_sum:,.0f} sqft) differs from "
                    f"project {surface} total ({total:,.0f} sqft) by more than "
                    f"{ROOM_SUM_TOLERANCE:.0%}"
                )

    return ValidationResult(is_valid=not errors, warnings=warnings, errors=errors)
