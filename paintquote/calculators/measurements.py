"""
Measurement estimator. Derives surface areas from a single floor-area figure.

Used by quick quotes and by the conversation flow when the contractor only
knows the house size.
"""

import math
from typing import Optional

from .pricing_config import DEFAULT_PRICING_CONFIG, PricingConfig
from .types import ProjectMeasurements, RoomMeasurements

ESTIMATED_ROOM_NAME = "Estimated Area"


def round_half_up(value: float) -> int:
    """Nearest whole square foot, halves rounded up (2502.5 -> 2503)."""
    return int(math.floor(value + 0.5))


def estimate_measurements(total_sqft: float, project_type: str = "interior",
                          config: Optional[PricingConfig] = None) -> ProjectMeasurements:
    """
    Walls/ceilings/trim from total floor area.

    Interior uses the interior ratios; exterior and "both" use the exterior
    ratios (no ceilings). The sign of total_sqft is not checked here;
    validate_measurements reports negative areas.
    """
    config = config or DEFAULT_PRICING_CONFIG
    ratios = config.interior_ratios if project_type == "interior" else config.exterior_ratios

    walls = round_half_up(total_sqft * ratios["walls"])
    # ceilings follow the floor area exactly
    ceilings = total_sqft * ratios["ceilings"]
    trim = round_half_up(total_sqft * ratios["trim"])

    return ProjectMeasurements(
        total_walls_sqft=walls,
        total_ceilings_sqft=ceilings,
        total_trim_sqft=trim,
        rooms=[RoomMeasurements(
            name=ESTIMATED_ROOM_NAME,
            type="other",
            walls_square_footage=walls,
            ceilings_square_footage=ceilings,
            trim_square_footage=trim,
        )],
    )


# Room geometry defaults
DEFAULT_CEILING_HEIGHT = 9.0
DOOR_SQFT = 21.0     # 3' x 7'
WINDOW_SQFT = 15.0   # 3' x 5'
TRIM_SQFT_PER_LINEAR_FT = 0.5  # baseboard band along the perimeter


def room_from_dimensions(name: str, length: float, width: float,
                         height: Optional[float] = None, room_type: str = "other",
                         doors: int = 0, windows: int = 0) -> RoomMeasurements:
    """
    Paintable areas of a rectangular room.

    ceilings = length x width
    walls = perimeter x height, less door and window openings
    trim = perimeter x baseboard band
    """
    height = height or DEFAULT_CEILING_HEIGHT
    perimeter = 2 * (length + width)
    walls = perimeter * height - doors * DOOR_SQFT - windows * WINDOW_SQFT
    return RoomMeasurements(
        name=name,
        type=room_type,
        walls_square_footage=max(walls, 0.0),
        ceilings_square_footage=length * width,
        trim_square_footage=perimeter * TRIM_SQFT_PER_LINEAR_FT,
        ceiling_height=height,
        doors=doors or None,
        windows=windows or None,
    )
