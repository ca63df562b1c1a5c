"""
Material cost calculator.

Gallons per surface at the configured coverage, priced at the selected
product's cost or the default table for the quality tier. Primer is only
added when a primer product is selected. Sundries are a flat share of the
paint cost.
"""

import logging
from typing import Optional

from .base import BaseCalculator
from .types import PaintProduct, ProductSelections, ProjectMeasurements

logger = logging.getLogger(__name__)

# surface -> product category that paints it
SURFACE_CATEGORIES = {
    "walls": "wall_paint",
    "ceilings": "ceiling_paint",
    "trim": "trim_paint",
}


class MaterialCostCalculator(BaseCalculator):

    def cost_per_gallon(self, product: Optional[PaintProduct], category: str,
                        quality: str) -> float:
        """Selected product's price, else the default table price for the tier."""
        if product is not None:
            return product.cost_per_gallon
        return self.config.default_cost(category, quality)

    def calculate(self, measurements: ProjectMeasurements,
                  products: ProductSelections) -> dict:
        """
        Returns:
            {
                "gallons": {"walls": int, "ceilings": int, "trim": int, "primer": int},
                "paint_costs": {"walls": float, "ceilings": float, "trim": float},
                "primer_cost": float,
                "paint_total": float,   # surfaces + primer
                "sundries": float,
                "total": float,         # paint_total + sundries
            }
        """
        areas = self.surface_areas(measurements)
        quality = products.paint_quality

        gallons = {}
        paint_costs = {}
        for surface, category in SURFACE_CATEGORIES.items():
            gallons[surface] = self.gallons_needed(areas[surface])
            product = getattr(products, category)
            paint_costs[surface] = gallons[surface] * self.cost_per_gallon(product, category, quality)

        primer_cost = 0.0
        gallons["primer"] = 0
        if products.primer is not None:
            gallons["primer"] = self.gallons_needed(areas["walls"] + areas["ceilings"])
            primer_cost = gallons["primer"] * products.primer.cost_per_gallon

        paint_total = sum(paint_costs.values()) + primer_cost
        sundries = paint_total * self.config.sundries_ratio

        logger.debug("Materials: %s gallons, paint $%.2f, sundries $%.2f",
                     gallons, paint_total, sundries)

        return {
            "gallons": gallons,
            "paint_costs": paint_costs,
            "primer_cost": primer_cost,
            "paint_total": paint_total,
            "sundries": sundries,
            "total": paint_total + sundries,
        }
