"""
Labor cost calculator: square footage x rate, per surface.

No minimum job charge and no crew-day rounding. Project days are reported
for display only and never feed back into the price.
"""

import math
from typing import Optional

from .base import SURFACES, BaseCalculator
from .pricing_config import DEFAULT_PRICING_CONFIG, PricingConfig
from .types import CompanyDefaults, PricingOverrides, ProjectMeasurements


class LaborCostCalculator(BaseCalculator):

    def resolve_rates(self, defaults: CompanyDefaults, overrides: PricingOverrides) -> dict:
        """Per-surface $/sqft: override if present, else company default."""
        return {
            "walls": self.resolve(overrides.walls_rate, defaults.walls_rate),
            "ceilings": self.resolve(overrides.ceilings_rate, defaults.ceilings_rate),
            "trim": self.resolve(overrides.trim_rate, defaults.trim_rate),
        }

    def calculate(self, measurements: ProjectMeasurements, rates: dict) -> dict:
        """Returns {"walls": float, "ceilings": float, "trim": float, "total": float}."""
        areas = self.surface_areas(measurements)
        costs = {surface: areas[surface] * rates[surface] for surface in SURFACES}
        costs["total"] = sum(costs[s] for s in SURFACES)
        return costs


def estimate_project_days(total_labor_sqft: float, painters: int = 1,
                          config: Optional[PricingConfig] = None) -> int:
    """Working days for a crew, rounded up. Informational only."""
    config = config or DEFAULT_PRICING_CONFIG
    if total_labor_sqft <= 0:
        return 0
    crew_rate = config.sqft_per_painter_day * max(painters, 1)
    return math.ceil(total_labor_sqft / crew_rate)
