"""
recalculate_quote tests: edits to a saved quote reprice from its snapshot.
"""

import pytest
from pydantic import ValidationError

from paintquote.calculators import calculate_quote, estimate_measurements, recalculate_quote
from paintquote.calculators.types import (
    ExistingQuoteData,
    PricingOverrides,
    ProductSelections,
    QuoteCalculationRequest,
    QuoteChanges,
)
from paintquote.calculators.measurements import room_from_dimensions


@pytest.fixture
def existing(company_defaults):
    measurements = estimate_measurements(1000, "interior")
    products = ProductSelections(paint_quality="better")
    pricing = calculate_quote(QuoteCalculationRequest(
        measurements=measurements,
        products=products,
        company_defaults=company_defaults,
        overrides=PricingOverrides(walls_rate=3.5),
    ))
    return ExistingQuoteData(measurements=measurements, products=products, pricing=pricing)


def test_empty_changes_reproduce_pricing(existing):
    assert recalculate_quote(existing, QuoteChanges()) == existing.pricing


def test_saved_overrides_carry_forward(existing):
    # The snapshot's walls rate (an override at creation) becomes the default
    pricing = recalculate_quote(existing, QuoteChanges(markup_override=30))
    assert pricing.walls_rate == 3.5


def test_markup_override(existing):
    pricing = recalculate_quote(existing, QuoteChanges(markup_override=30))
    assert pricing.markup_percentage == 30
    assert pricing.subtotal == pytest.approx(existing.pricing.subtotal)
    assert pricing.final_price > existing.pricing.final_price
    assert pricing.tax_rate == existing.pricing.tax_rate


def test_rate_overrides(existing):
    pricing = recalculate_quote(existing, QuoteChanges(rate_overrides={"ceilings": 2.5, "trim": 4}))
    assert pricing.walls_rate == 3.5
    assert pricing.ceilings_rate == 2.5
    assert pricing.trim_rate == 4
    assert pricing.total_labor_cost == pytest.approx(2500 * 3.5 + 1000 * 2.5 + 500 * 4)


def test_rate_overrides_reject_unknown_surface():
    with pytest.raises(ValidationError):
        QuoteChanges(rate_overrides={"walls_rate": 4})


def test_measurement_change(existing):
    pricing = recalculate_quote(existing, QuoteChanges(measurements={"total_walls_sqft": 3000}))
    assert pricing.total_labor_cost == pytest.approx(3000 * 3.5 + 1000 * 2 + 500 * 5)


def test_rooms_change_rebuilds_totals(existing):
    rooms = [room_from_dimensions("Bedroom 1", 15, 9).model_dump()]
    pricing = recalculate_quote(existing, QuoteChanges(measurements={"rooms": rooms}))
    assert pricing.total_labor_cost == pytest.approx(432 * 3.5 + 135 * 2 + 24 * 5)


def test_product_change(existing):
    pricing = recalculate_quote(existing, QuoteChanges(products={"paint_quality": "best"}))
    paint = 8 * 60 + 3 * 55 + 2 * 70
    assert pricing.total_material_cost == pytest.approx(paint * 1.12)
    assert pricing.total_labor_cost == pytest.approx(existing.pricing.total_labor_cost)


def test_recalculate_does_not_mutate_existing(existing):
    before = existing.model_dump()
    recalculate_quote(existing, QuoteChanges(markup_override=50, measurements={"total_trim_sqft": 0}))
    assert existing.model_dump() == before
