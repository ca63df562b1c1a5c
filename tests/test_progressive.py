"""
Progressive estimator tests: running price, confidence and completeness as
the conversation fills in data.
"""

from paintquote.calculators import estimate_measurements
from paintquote.calculators.progressive import (
    INDUSTRY_AVERAGES,
    PartialQuoteData,
    ProgressiveEstimator,
    calculate_completeness,
    format_estimate_message,
    missing_data,
)

estimator = ProgressiveEstimator()


def test_nothing_known_uses_industry_average(company_defaults):
    estimate = estimator.estimate(PartialQuoteData(), company_defaults)
    assert estimate.strategy == "industry_average"
    assert estimate.estimated_price == round(INDUSTRY_AVERAGES["interior"] * 1.2)
    assert estimate.confidence == "low"
    assert estimate.completeness == 0
    assert estimate.suggested_range["min"] == round(5400 * 0.6)
    assert estimate.suggested_range["max"] == round(5400 * 1.4)


def test_project_type_uses_typical_home(company_defaults):
    estimate = estimator.estimate(PartialQuoteData(project_type="interior"), company_defaults)
    assert estimate.strategy == "project_type"
    assert estimate.completeness == 10


def test_surfaces_limit_typical_home(company_defaults):
    all_surfaces = estimator.estimate(
        PartialQuoteData(project_type="interior", surfaces=["walls", "ceilings", "trim"]),
        company_defaults,
    )
    walls_only = estimator.estimate(
        PartialQuoteData(project_type="interior", surfaces=["walls"]),
        company_defaults,
    )
    assert walls_only.strategy == "surfaces"
    assert walls_only.estimated_price < all_surfaces.estimated_price


def test_measurements_use_real_calculator_without_tax(company_defaults):
    data = PartialQuoteData(
        customer_name="Jane Smith",
        address="123 Main St",
        project_type="interior",
        surfaces=["walls", "ceilings", "trim"],
        measurements=estimate_measurements(1000, "interior"),
        paint_selected=True,
        markup_percentage=20,
    )
    estimate = estimator.estimate(data, company_defaults)
    assert estimate.strategy == "measurements"
    assert estimate.completeness == 100
    assert estimate.confidence == "high"
    # Reference job before the 8% tax
    assert estimate.estimated_price == round(12660.80 * 1.2)
    assert estimate.missing_data == []


def test_markup_defaults_to_company_markup(company_defaults):
    data = PartialQuoteData(measurements=estimate_measurements(1000, "interior"))
    estimate = estimator.estimate(data, company_defaults)
    assert estimate.breakdown.markup == round(12660.80 * 0.2)


def test_completeness_weights():
    assert calculate_completeness(PartialQuoteData(customer_name="Jane", address="1 Elm St")) == 10
    assert calculate_completeness(PartialQuoteData(
        measurements=estimate_measurements(1000, "interior"),
    )) == 40


def test_medium_confidence_needs_surfaces(company_defaults):
    data = PartialQuoteData(
        customer_name="Jane Smith",
        address="123 Main St",
        project_type="interior",
        surfaces=["walls"],
        paint_selected=True,
    )
    estimate = estimator.estimate(data, company_defaults)
    assert estimate.completeness == 50
    assert estimate.confidence == "medium"


def test_missing_data_lists_gaps():
    missing = missing_data(PartialQuoteData(customer_name="Jane"))
    assert "Customer name" not in missing
    assert "Property address" in missing
    assert "Measurements" in missing


def test_format_estimate_message_low_confidence(company_defaults):
    estimate = estimator.estimate(PartialQuoteData(), company_defaults)
    message = format_estimate_message(estimate)
    assert message.startswith("Early estimate")
    assert "% complete" in message
