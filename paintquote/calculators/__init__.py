"""
Deterministic pricing engine.

Pure Python math. No AI.
Given measurements, product selections and company rate defaults,
produce a PricingDetails snapshot: labor, materials, markup, tax, final price.
"""

from .quote_calculator import (
    QuoteCalculator,
    calculate_quick_quote,
    calculate_quote,
    estimate_measurements,
    get_cost_breakdown_summary,
    recalculate_quote,
    validate_measurements,
)

__all__ = [
    "QuoteCalculator",
    "calculate_quick_quote",
    "calculate_quote",
    "estimate_measurements",
    "get_cost_breakdown_summary",
    "recalculate_quote",
    "validate_measurements",
]
