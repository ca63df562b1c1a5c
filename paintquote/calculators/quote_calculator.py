"""
Pricing aggregator. Combines labor and material costs into a PricingDetails.

Pure math. subtotal = labor + materials, markup on subtotal, tax on
subtotal + markup. Values keep full float precision; rounding to cents is
done where results leave the engine (PricingDetails.rounded()).

Input: QuoteCalculationRequest (measurements + products + company defaults + overrides)
Output: PricingDetails
"""

import logging
from typing import Optional

from .labor import LaborCostCalculator
from .materials import MaterialCostCalculator
from .measurements import estimate_measurements as _estimate_measurements
from .pricing_config import DEFAULT_PRICING_CONFIG, PricingConfig
from .types import (
    CompanyDefaults,
    ExistingQuoteData,
    PricingBreakdown,
    PricingDetails,
    PricingOverrides,
    ProductSelections,
    ProjectMeasurements,
    QuoteCalculationRequest,
    QuoteChanges,
    RateOverrides,
    ValidationResult,
)
from .validator import validate_measurements as _validate_measurements

logger = logging.getLogger(__name__)

_TOTAL_FIELDS = ("total_walls_sqft", "total_ceilings_sqft", "total_trim_sqft")


class QuoteCalculator:
    """
    Calculation entry points, bound to one PricingConfig.
    The module-level functions below use the default configuration.
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or DEFAULT_PRICING_CONFIG
        self.materials = MaterialCostCalculator(self.config)
        self.labor = LaborCostCalculator(self.config)

    def calculate_quote(self, request: QuoteCalculationRequest) -> PricingDetails:
        """Full calculation. Deterministic: same request, same PricingDetails."""
        defaults = request.company_defaults
        overrides = request.overrides

        rates = self.labor.resolve_rates(defaults, overrides)
        labor = self.labor.calculate(request.measurements, rates)
        materials = self.materials.calculate(request.measurements, request.products)

        markup_pct = self.labor.resolve(overrides.markup_percentage, defaults.markup_percentage)
        tax_rate = self.labor.resolve(overrides.tax_rate, defaults.tax_rate)

        subtotal = labor["total"] + materials["total"]
        markup_amount = subtotal * markup_pct / 100
        after_markup = subtotal + markup_amount
        tax_amount = after_markup * tax_rate / 100
        final_price = after_markup + tax_amount

        paint = materials["paint_costs"]
        breakdown = PricingBreakdown(
            walls_cost=labor["walls"] + paint["walls"],
            ceilings_cost=labor["ceilings"] + paint["ceilings"],
            trim_cost=labor["trim"] + paint["trim"],
            sundries=materials["sundries"],
            profit=markup_amount,
        )

        return PricingDetails(
            walls_rate=rates["walls"],
            ceilings_rate=rates["ceilings"],
            trim_rate=rates["trim"],
            total_material_cost=materials["total"],
            total_labor_cost=labor["total"],
            subtotal=subtotal,
            markup_percentage=markup_pct,
            markup_amount=markup_amount,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            final_price=final_price,
            breakdown=breakdown,
        )

    def estimate_measurements(self, total_sqft: float, project_type: str = "interior") -> ProjectMeasurements:
        return _estimate_measurements(total_sqft, project_type, self.config)

    def calculate_quick_quote(self, total_sqft: float, paint_quality: str,
                              company_defaults: CompanyDefaults,
                              project_type: str = "interior") -> PricingDetails:
        """Estimate measurements from floor area, then price at a quality tier."""
        measurements = self.estimate_measurements(total_sqft, project_type)
        return self.calculate_quote(QuoteCalculationRequest(
            measurements=measurements,
            products=ProductSelections(paint_quality=paint_quality),
            company_defaults=company_defaults,
        ))

    def recalculate_quote(self, existing: ExistingQuoteData, changes: QuoteChanges) -> PricingDetails:
        """
        Reprice a saved quote after edits.

        The existing pricing snapshot supplies the company defaults (its resolved
        rates, markup and tax), so empty changes reproduce the original numbers.
        """
        measurements, products = self.apply_changes(existing, changes)

        pricing = existing.pricing
        company_defaults = CompanyDefaults(
            walls_rate=pricing.walls_rate,
            ceilings_rate=pricing.ceilings_rate,
            trim_rate=pricing.trim_rate,
            markup_percentage=pricing.markup_percentage,
            tax_rate=pricing.tax_rate,
        )

        rate_overrides = changes.rate_overrides or RateOverrides()
        overrides = PricingOverrides(
            walls_rate=rate_overrides.walls,
            ceilings_rate=rate_overrides.ceilings,
            trim_rate=rate_overrides.trim,
            markup_percentage=changes.markup_override,
        )

        return self.calculate_quote(QuoteCalculationRequest(
            measurements=measurements,
            products=products,
            company_defaults=company_defaults,
            overrides=overrides,
        ))

    def validate_measurements(self, measurements: ProjectMeasurements) -> ValidationResult:
        return _validate_measurements(measurements)

    def get_cost_breakdown_summary(self, pricing: PricingDetails) -> dict:
        """Per-category amounts with their share of the final price."""
        final = pricing.final_price
        b = pricing.breakdown

        def share(amount):
            return amount / final * 100 if final else 0.0

        categories = [
            ("Walls", b.walls_cost),
            ("Ceilings", b.ceilings_cost),
            ("Trim", b.trim_cost),
            ("Sundries", b.sundries),
            ("Profit", b.profit),
            ("Tax", pricing.tax_amount),
        ]
        return {
            "categories": [
                {"name": name, "amount": round(amount, 2), "percentage": round(share(amount), 1)}
                for name, amount in categories
            ],
            "totals": {
                "materials": round(pricing.total_material_cost, 2),
                "labor": round(pricing.total_labor_cost, 2),
                "markup": round(pricing.markup_amount, 2),
                "tax": round(pricing.tax_amount, 2),
            },
        }

    def apply_changes(self, existing: ExistingQuoteData,
                      changes: QuoteChanges) -> tuple[ProjectMeasurements, ProductSelections]:
        """Measurements and products after merging the edits into the saved ones."""
        measurements = self._merge_measurements(existing.measurements, changes.measurements or {})

        products = existing.products
        if changes.products:
            merged = existing.products.model_dump()
            merged.update(changes.products)
            products = ProductSelections.model_validate(merged)
        return measurements, products

    def _merge_measurements(self, current: ProjectMeasurements, updates: dict) -> ProjectMeasurements:
        if not updates:
            return current
        merged = current.model_dump()
        merged.update(updates)
        # New rooms without explicit totals: totals follow the rooms
        if "rooms" in updates and not any(f in updates for f in _TOTAL_FIELDS):
            rooms = ProjectMeasurements.model_validate(merged).rooms
            return ProjectMeasurements.from_rooms(rooms)
        return ProjectMeasurements.model_validate(merged)


_default_calculator = QuoteCalculator()


def calculate_quote(request: QuoteCalculationRequest) -> PricingDetails:
    return _default_calculator.calculate_quote(request)


def estimate_measurements(total_sqft: float, project_type: str = "interior") -> ProjectMeasurements:
    return _default_calculator.estimate_measurements(total_sqft, project_type)


def calculate_quick_quote(total_sqft: float, paint_quality: str,
                          company_defaults: CompanyDefaults,
                          project_type: str = "interior") -> PricingDetails:
    return _default_calculator.calculate_quick_quote(
        total_sqft, paint_quality, company_defaults, project_type,
    )


def recalculate_quote(existing: ExistingQuoteData, changes: QuoteChanges) -> PricingDetails:
    return _default_calculator.recalculate_quote(existing, changes)


def validate_measurements(measurements: ProjectMeasurements) -> ValidationResult:
    return _default_calculator.validate_measurements(measurements)


def get_cost_breakdown_summary(pricing: PricingDetails) -> dict:
    return _default_calculator.get_cost_breakdown_summary(pricing)
