"""
Stateless pricing endpoints. Nothing here is saved.

company_defaults may be sent with a request; otherwise the caller's
profile rates are used.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .. import models
from ..auth import get_current_user
from ..calculators.labor import estimate_project_days
from ..calculators.types import (
    CompanyDefaults,
    PricingDetails,
    PricingOverrides,
    ProductSelections,
    ProjectMeasurements,
    ProjectType,
    QualityTier,
    QuoteCalculationRequest,
)
from .quotes import calculator, company_defaults_for

router = APIRouter(prefix="/calculator", tags=["calculator"])


class CalculateRequest(BaseModel):
    measurements: ProjectMeasurements
    products: ProductSelections = Field(default_factory=ProductSelections)
    company_defaults: Optional[CompanyDefaults] = None
    overrides: PricingOverrides = Field(default_factory=PricingOverrides)


class QuickQuoteRequest(BaseModel):
    total_sqft: float = Field(gt=0)
    paint_quality: QualityTier = "better"
    project_type: ProjectType = "interior"
    company_defaults: Optional[CompanyDefaults] = None


class EstimateRequest(BaseModel):
    total_sqft: float = Field(gt=0)
    project_type: ProjectType = "interior"


def _response(pricing: PricingDetails, measurements: ProjectMeasurements, warnings: list) -> dict:
    labor_sqft = (measurements.total_walls_sqft + measurements.total_ceilings_sqft
                  + measurements.total_trim_sqft)
    return {
        "pricing": pricing.rounded(),
        "measurements": measurements.model_dump(),
        "warnings": warnings,
        "estimated_days": estimate_project_days(labor_sqft, config=calculator.config),
    }


@router.post("/quote")
def calculate(request: CalculateRequest, current_user: models.User = Depends(get_current_user)):
    validation = calculator.validate_measurements(request.measurements)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    pricing = calculator.calculate_quote(QuoteCalculationRequest(
        measurements=request.measurements,
        products=request.products,
        company_defaults=request.company_defaults or company_defaults_for(current_user),
        overrides=request.overrides,
    ))
    return _response(pricing, request.measurements, validation.warnings)


@router.post("/quick")
def quick_quote(request: QuickQuoteRequest, current_user: models.User = Depends(get_current_user)):
    """Price from floor area alone, at one quality tier."""
    defaults = request.company_defaults or company_defaults_for(current_user)
    measurements = calculator.estimate_measurements(request.total_sqft, request.project_type)
    pricing = calculator.calculate_quick_quote(
        request.total_sqft, request.paint_quality, defaults, request.project_type,
    )
    validation = calculator.validate_measurements(measurements)
    return _response(pricing, measurements, validation.warnings)


@router.post("/estimate")
def estimate(request: EstimateRequest):
    """Surface areas estimated from floor area."""
    measurements = calculator.estimate_measurements(request.total_sqft, request.project_type)
    return measurements.model_dump()


@router.post("/validate")
def validate(measurements: ProjectMeasurements):
    return calculator.validate_measurements(measurements).model_dump()


@router.post("/breakdown")
def breakdown(pricing: PricingDetails):
    return calculator.get_cost_breakdown_summary(pricing)
