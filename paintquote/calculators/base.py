"""
Abstract base class for the cost calculators.

Input: ProjectMeasurements plus whatever selections the calculator prices
Output: a plain dict of per-surface costs
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from .pricing_config import DEFAULT_PRICING_CONFIG, PricingConfig

logger = logging.getLogger(__name__)

SURFACES = ("walls", "ceilings", "trim")


class BaseCalculator(ABC):
    """All cost calculators inherit from this."""

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or DEFAULT_PRICING_CONFIG

    @abstractmethod
    def calculate(self, *args, **kwargs) -> dict:
        pass

    # --- Helper methods for all calculators ---

    def gallons_needed(self, square_feet: float) -> int:
        """Gallons to cover an area. Always rounds up."""
        return math.ceil(square_feet / self.config.coverage_sqft_per_gallon)

    def resolve(self, override: Optional[float], default: float) -> float:
        """Override if present, else the company default."""
        return override if override is not None else default

    def surface_areas(self, measurements) -> dict:
        """Map surface name to its total square footage."""
        return {
            "walls": measurements.total_walls_sqft,
            "ceilings": measurements.total_ceilings_sqft,
            "trim": measurements.total_trim_sqft,
        }


def parse_number(value, default: float = 0.0) -> float:
    """Parse a numeric value from user input. Handles '1,800', '2500 sqft', '20%'."""
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower().replace(",", "")
    for suffix in ("square feet", "sq ft", "sqft", "sf", "%", "ft", "'"):
        if text.endswith(suffix):
            text = text[: -len(suffix)].strip()
    try:
        return float(text)
    except (ValueError, TypeError):
        return default


def parse_int(value, default: int = 0) -> int:
    """Parse an integer from user input."""
    if value is None:
        return default
    try:
        return int(parse_number(value, float(default)))
    except (ValueError, TypeError):
        return default
