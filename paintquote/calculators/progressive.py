"""
Progressive estimator: a running price from whatever the conversation has so far.

Strategies, most to least accurate:
1. measurements known: the real calculator with the chosen products
2. surfaces known: a typical home for the project type, limited to those surfaces
3. project type known: a typical home, all surfaces
4. nothing known: national average job price
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .quote_calculator import QuoteCalculator
from .types import (
    CompanyDefaults,
    PricingOverrides,
    ProductSelections,
    ProjectMeasurements,
    QuoteCalculationRequest,
)

TYPICAL_HOME_SQFT = 1800

# Whole-job averages (before markup) when nothing is known yet
INDUSTRY_AVERAGES = {"interior": 4500, "exterior": 3800, "both": 6500}
INDUSTRY_LABOR_SHARE = 0.6

RANGE_VARIATION = {"high": 0.10, "medium": 0.25, "low": 0.40}

# Completeness points per piece of collected data (sums to 100)
COMPLETENESS_WEIGHTS = {
    "customer_name": 5,
    "address": 5,
    "project_type": 10,
    "surfaces": 15,
    "measurements": 40,
    "paint": 15,
    "markup": 10,
}

Confidence = Literal["low", "medium", "high"]


class PartialQuoteData(BaseModel):
    """What the conversation has collected so far. Everything is optional."""
    model_config = ConfigDict(frozen=True)

    customer_name: Optional[str] = None
    address: Optional[str] = None
    project_type: Optional[str] = None
    surfaces: list[str] = Field(default_factory=list)
    measurements: Optional[ProjectMeasurements] = None
    products: Optional[ProductSelections] = None
    paint_selected: bool = False
    markup_percentage: Optional[float] = None


class EstimateBreakdown(BaseModel):
    materials: float
    labor: float
    markup: float
    total: float


class ProgressiveEstimate(BaseModel):
    estimated_price: float
    confidence: Confidence
    completeness: int
    missing_data: list[str]
    breakdown: EstimateBreakdown
    suggested_range: dict[str, float]
    strategy: str


def _has_measurements(data: PartialQuoteData) -> bool:
    m = data.measurements
    return m is not None and (m.total_walls_sqft + m.total_ceilings_sqft + m.total_trim_sqft) > 0


def calculate_completeness(data: PartialQuoteData) -> int:
    score = 0
    if data.customer_name:
        score += COMPLETENESS_WEIGHTS["customer_name"]
    if data.address:
        score += COMPLETENESS_WEIGHTS["address"]
    if data.project_type:
        score += COMPLETENESS_WEIGHTS["project_type"]
    if data.surfaces:
        score += COMPLETENESS_WEIGHTS["surfaces"]
    if _has_measurements(data):
        score += COMPLETENESS_WEIGHTS["measurements"]
    if data.paint_selected:
        score += COMPLETENESS_WEIGHTS["paint"]
    if data.markup_percentage is not None:
        score += COMPLETENESS_WEIGHTS["markup"]
    return min(score, 100)


def confidence_level(completeness: int, data: PartialQuoteData) -> Confidence:
    if completeness >= 80 and _has_measurements(data):
        return "high"
    if completeness >= 50 and data.surfaces:
        return "medium"
    return "low"


def missing_data(data: PartialQuoteData) -> list[str]:
    missing = []
    if not data.customer_name:
        missing.append("Customer name")
    if not data.address:
        missing.append("Property address")
    if not data.project_type:
        missing.append("Project type (interior/exterior)")
    if not data.surfaces:
        missing.append("Surfaces to paint")
    if not _has_measurements(data):
        missing.append("Measurements")
    if not data.paint_selected:
        missing.append("Paint selection")
    if data.markup_percentage is None:
        missing.append("Markup percentage")
    return missing


class ProgressiveEstimator:

    def __init__(self, calculator: Optional[QuoteCalculator] = None):
        self.calculator = calculator or QuoteCalculator()

    def estimate(self, data: PartialQuoteData, company_defaults: CompanyDefaults) -> ProgressiveEstimate:
        markup_pct = (data.markup_percentage if data.markup_percentage is not None
                      else company_defaults.markup_percentage)

        if _has_measurements(data):
            strategy = "measurements"
            measurements = data.measurements
        elif data.surfaces:
            strategy = "surfaces"
            measurements = self._typical_home(data.project_type, data.surfaces)
        elif data.project_type:
            strategy = "project_type"
            measurements = self._typical_home(data.project_type, None)
        else:
            strategy = "industry_average"
            measurements = None

        if measurements is not None:
            # Running figure excludes tax
            pricing = self.calculator.calculate_quote(QuoteCalculationRequest(
                measurements=measurements,
                products=data.products or ProductSelections(),
                company_defaults=company_defaults,
                overrides=PricingOverrides(markup_percentage=markup_pct, tax_rate=0),
            ))
            materials = pricing.total_material_cost
            labor = pricing.total_labor_cost
            markup_amount = pricing.markup_amount
            total = pricing.final_price
        else:
            base = INDUSTRY_AVERAGES.get(data.project_type or "interior", INDUSTRY_AVERAGES["interior"])
            labor = base * INDUSTRY_LABOR_SHARE
            materials = base - labor
            markup_amount = base * markup_pct / 100
            total = base + markup_amount

        completeness = calculate_completeness(data)
        confidence = confidence_level(completeness, data)
        variation = RANGE_VARIATION[confidence]

        return ProgressiveEstimate(
            estimated_price=round(total),
            confidence=confidence,
            completeness=completeness,
            missing_data=missing_data(data),
            breakdown=EstimateBreakdown(
                materials=round(materials),
                labor=round(labor),
                markup=round(markup_amount),
                total=round(total),
            ),
            suggested_range={
                "min": round(total * (1 - variation)),
                "max": round(total * (1 + variation)),
            },
            strategy=strategy,
        )

    def _typical_home(self, project_type: Optional[str], surfaces: Optional[list]) -> ProjectMeasurements:
        estimated = self.calculator.estimate_measurements(TYPICAL_HOME_SQFT, project_type or "interior")
        if surfaces is None:
            return estimated
        return ProjectMeasurements.from_totals(
            walls=estimated.total_walls_sqft if "walls" in surfaces else 0,
            ceilings=estimated.total_ceilings_sqft if "ceilings" in surfaces else 0,
            trim=estimated.total_trim_sqft if "trim" in surfaces else 0,
            room_name="Typical Home",
        )


def format_estimate_message(estimate: ProgressiveEstimate) -> str:
    """One-line summary shown under each conversation reply."""
    low = estimate.suggested_range["min"]
    high = estimate.suggested_range["max"]
    if estimate.confidence == "high":
        message = f"Current estimate: ${estimate.estimated_price:,.0f}"
    elif estimate.confidence == "medium":
        message = f"Current estimate: ${low:,.0f} - ${high:,.0f}"
    else:
        message = f"Early estimate: ${low:,.0f} - ${high:,.0f} (low confidence)"
    if estimate.completeness < 100:
        message += f" ({estimate.completeness}% complete)"
    return message
