"""
Pricing constants, gathered into one injectable structure.

The defaults are business constants, not computed values. A tenant or region
can pass its own PricingConfig to the calculators instead of editing literals.
"""

from pydantic import BaseModel, ConfigDict, Field

# USD per gallon, by category and quality tier
DEFAULT_PAINT_COSTS: dict[str, dict[str, float]] = {
    "primer": {"good": 25, "better": 30, "best": 35, "premium": 40},
    "wall_paint": {"good": 35, "better": 45, "best": 60, "premium": 75},
    "ceiling_paint": {"good": 30, "better": 40, "best": 55, "premium": 70},
    "trim_paint": {"good": 40, "better": 55, "best": 70, "premium": 85},
}

# Surface area multipliers applied to a single floor-area figure
INTERIOR_RATIOS = {"walls": 2.5, "ceilings": 1.0, "trim": 0.5}
EXTERIOR_RATIOS = {"walls": 1.8, "ceilings": 0.0, "trim": 0.3}


class PricingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    coverage_sqft_per_gallon: float = 350.0
    sundries_ratio: float = 0.12  # brushes, rollers and tape, as a share of paint cost
    default_paint_costs: dict[str, dict[str, float]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_PAINT_COSTS.items()}
    )
    interior_ratios: dict[str, float] = Field(default_factory=lambda: dict(INTERIOR_RATIOS))
    exterior_ratios: dict[str, float] = Field(default_factory=lambda: dict(EXTERIOR_RATIOS))
    # Painter-day production, informational only (never priced)
    sqft_per_painter_day: float = 1000.0

    def default_cost(self, category: str, quality: str = "better") -> float:
        """Default $/gallon for a category at a quality tier."""
        return self.default_paint_costs[category][quality]


DEFAULT_PRICING_CONFIG = PricingConfig()
