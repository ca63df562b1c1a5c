import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from .. import models
from ..auth import get_current_user
from ..calculators import QuoteCalculator
from ..calculators.labor import estimate_project_days
from ..calculators.types import (
    CompanyDefaults,
    ExistingQuoteData,
    PricingDetails,
    PricingOverrides,
    ProductSelections,
    ProjectMeasurements,
    ProjectType,
    QuoteCalculationRequest,
    QuoteChanges,
)
from ..config import settings
from ..database import get_db
from .customers import find_or_create_customer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

calculator = QuoteCalculator()


def generate_quote_number(db: Session) -> str:
    """Next PQ-YYYY-NNNN, one past the highest number issued this year."""
    year = datetime.utcnow().year
    prefix = f"PQ-{year}-"
    rows = (db.query(models.Quote.quote_number)
            .filter(models.Quote.quote_number.like(f"{prefix}%")).all())
    highest = max((int(n[len(prefix):]) for (n,) in rows if n[len(prefix):].isdigit()), default=0)
    return f"{prefix}{str(highest + 1).zfill(4)}"



def company_defaults_for(user: Optional[models.User]) -> CompanyDefaults:
    """The contractor's saved rates, falling back to the configured defaults."""
    def pick(value, fallback):
        return value if value is not None else fallback

    return CompanyDefaults(
        walls_rate=pick(user and user.walls_rate, settings.WALLS_RATE_DEFAULT),
        ceilings_rate=pick(user and user.ceilings_rate, settings.CEILINGS_RATE_DEFAULT),
        trim_rate=pick(user and user.trim_rate, settings.TRIM_RATE_DEFAULT),
        markup_percentage=pick(user and user.markup_default, settings.MARKUP_DEFAULT),
        tax_rate=pick(user and user.tax_rate, settings.TAX_RATE_DEFAULT),
    )


def apply_pricing(quote: models.Quote, measurements: ProjectMeasurements,
                  products: ProductSelections, pricing: PricingDetails):
    """Write a pricing snapshot and its denormalized columns onto a quote row."""
    rounded = pricing.rounded()
    quote.walls_sqft = measurements.total_walls_sqft
    quote.ceilings_sqft = measurements.total_ceilings_sqft
    quote.trim_sqft = measurements.total_trim_sqft
    quote.walls_rate = pricing.walls_rate
    quote.ceilings_rate = pricing.ceilings_rate
    quote.trim_rate = pricing.trim_rate
    quote.markup_percentage = pricing.markup_percentage
    quote.tax_rate = pricing.tax_rate
    quote.total_materials = rounded["total_material_cost"]
    quote.total_labor = rounded["total_labor_cost"]
    quote.subtotal = rounded["subtotal"]
    quote.final_price = rounded["final_price"]
    quote.measurements_json = measurements.model_dump()
    quote.products_json = products.model_dump()
    quote.pricing_json = rounded
    flag_modified(quote, "measurements_json")
    flag_modified(quote, "products_json")
    flag_modified(quote, "pricing_json")


def save_quote(db: Session, user: Optional[models.User], *, customer_name: str,
               measurements: ProjectMeasurements, products: ProductSelections,
               pricing: PricingDetails, customer_email: Optional[str] = None,
               customer_phone: Optional[str] = None, address: Optional[str] = None,
               project_type: str = "interior", special_requests: Optional[str] = None,
               timeline: Optional[str] = None,
               creation_method: models.CreationMethod = models.CreationMethod.WIZARD,
               created_by: models.CreatedBy = models.CreatedBy.MANUAL,
               session_id: Optional[str] = None, ai_provider: Optional[str] = None,
               conversation_summary: Optional[str] = None) -> models.Quote:
    """
    Create the Quote row (and its customer) and flush it. The caller commits.
    """
    customer = find_or_create_customer(
        db, customer_name, email=customer_email, phone=customer_phone, address=address,
    )
    quote = models.Quote(
        quote_number=generate_quote_number(db),
        user_id=user.id if user else None,
        customer_id=customer.id,
        session_id=session_id,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        address=address,
        project_type=project_type,
        special_requests=special_requests,
        timeline=timeline,
        status=models.QuoteStatus.DRAFT,
        created_by=created_by,
        creation_method=creation_method,
        ai_provider=ai_provider,
        conversation_summary=conversation_summary,
    )
    apply_pricing(quote, measurements, products, pricing)
    db.add(quote)
    db.flush()
    return quote


def existing_quote_data(quote: models.Quote) -> ExistingQuoteData:
    if not quote.pricing_json or quote.measurements_json is None:
        raise HTTPException(status_code=400, detail="Quote has no pricing snapshot to recalculate")
    return ExistingQuoteData(
        measurements=ProjectMeasurements.model_validate(quote.measurements_json),
        products=ProductSelections.model_validate(quote.products_json or {}),
        pricing=PricingDetails.model_validate(quote.pricing_json),
    )


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", action, e)
        raise HTTPException(status_code=500, detail=f"{action} failed, nothing was saved")


def _get_owned_quote(db: Session, quote_id: int, user: models.User) -> models.Quote:
    quote = db.query(models.Quote).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    if quote.user_id is not None and quote.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your quote")
    return quote


# --- Schemas ---

class QuoteCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    project_type: ProjectType = "interior"
    special_requests: Optional[str] = None
    timeline: Optional[str] = None
    measurements: ProjectMeasurements
    products: ProductSelections = Field(default_factory=ProductSelections)
    overrides: PricingOverrides = Field(default_factory=PricingOverrides)
    creation_method: models.CreationMethod = models.CreationMethod.WIZARD
    valid_days: int = 30


class QuoteUpdate(BaseModel):
    status: Optional[models.QuoteStatus] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    special_requests: Optional[str] = None
    timeline: Optional[str] = None
    valid_days: Optional[int] = None


class MarkupRequest(BaseModel):
    markup_percentage: float = Field(ge=0, le=100)


# --- Endpoints ---

@router.post("/")
def create_quote(
    request: QuoteCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    validation = calculator.validate_measurements(request.measurements)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    pricing = calculator.calculate_quote(QuoteCalculationRequest(
        measurements=request.measurements,
        products=request.products,
        company_defaults=company_defaults_for(current_user),
        overrides=request.overrides,
    ))
    quote = save_quote(
        db, current_user,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        customer_phone=request.customer_phone,
        address=request.address,
        project_type=request.project_type,
        special_requests=request.special_requests,
        timeline=request.timeline,
        measurements=request.measurements,
        products=request.products,
        pricing=pricing,
        creation_method=request.creation_method,
    )
    quote.valid_days = request.valid_days
    _commit(db, "Quote creation")
    db.refresh(quote)
    return {**quote_to_dict(quote), "warnings": validation.warnings}


@router.get("/")
def list_quotes(
    status: Optional[models.QuoteStatus] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """The contractor's quotes, newest first."""
    query = db.query(models.Quote).filter(models.Quote.user_id == current_user.id)
    if status:
        query = query.filter(models.Quote.status == status)
    quotes = query.order_by(models.Quote.created_at.desc()).offset(skip).limit(limit).all()
    return [_quote_summary(q) for q in quotes]


@router.get("/{quote_id}")
def get_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return quote_to_dict(_get_owned_quote(db, quote_id, current_user))


@router.patch("/{quote_id}")
def update_quote(
    quote_id: int,
    update: QuoteUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Status and customer details. Pricing changes go through /recalculate."""
    quote = _get_owned_quote(db, quote_id, current_user)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(quote, field, value)
    quote.updated_at = datetime.utcnow()
    _commit(db, "Quote update")
    db.refresh(quote)
    return quote_to_dict(quote)


@router.delete("/{quote_id}")
def delete_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    quote = _get_owned_quote(db, quote_id, current_user)
    db.delete(quote)
    _commit(db, "Quote deletion")
    return {"ok": True}


@router.post("/{quote_id}/recalculate")
def recalculate(
    quote_id: int,
    changes: QuoteChanges,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Reprice a saved quote. Measurements and products are merged into the
    saved snapshot; rate_overrides ({walls, ceilings, trim}) and
    markup_override replace the saved rates.
    """
    quote = _get_owned_quote(db, quote_id, current_user)
    existing = existing_quote_data(quote)

    try:
        measurements, products = calculator.apply_changes(existing, changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    validation = calculator.validate_measurements(measurements)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    pricing = calculator.recalculate_quote(existing, changes)
    previous_total = quote.final_price
    apply_pricing(quote, measurements, products, pricing)
    quote.updated_at = datetime.utcnow()
    _commit(db, "Quote recalculation")
    db.refresh(quote)

    logger.info("Quote %s repriced: %.2f -> %.2f", quote.quote_number, previous_total, quote.final_price)
    return {
        **quote_to_dict(quote),
        "previous_final_price": previous_total,
        "warnings": validation.warnings,
    }


@router.put("/{quote_id}/markup")
def update_markup(
    quote_id: int,
    request: MarkupRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Change the markup on a saved quote; labor and materials stay as they are."""
    quote = _get_owned_quote(db, quote_id, current_user)
    existing = existing_quote_data(quote)

    pricing = calculator.recalculate_quote(
        existing, QuoteChanges(markup_override=request.markup_percentage),
    )
    apply_pricing(quote, existing.measurements, existing.products, pricing)
    quote.updated_at = datetime.utcnow()
    _commit(db, "Markup update")
    db.refresh(quote)

    return {
        "quote_id": quote.id,
        "quote_number": quote.quote_number,
        "subtotal": quote.subtotal,
        "markup_percentage": quote.markup_percentage,
        "final_price": quote.final_price,
        "pricing": quote.pricing_json,
    }


@router.get("/{quote_id}/breakdown")
def get_quote_breakdown(
    quote_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Internal cost breakdown, profit included. Not shown to the customer."""
    quote = _get_owned_quote(db, quote_id, current_user)
    existing = existing_quote_data(quote)
    total_sqft = (existing.measurements.total_walls_sqft
                  + existing.measurements.total_ceilings_sqft
                  + existing.measurements.total_trim_sqft)
    return {
        "quote_number": quote.quote_number,
        **calculator.get_cost_breakdown_summary(existing.pricing),
        "estimated_days": estimate_project_days(total_sqft, config=calculator.config),
    }


def _quote_summary(q: models.Quote) -> dict:
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "customer_name": q.customer_name,
        "address": q.address,
        "project_type": q.project_type,
        "status": q.status.value if q.status else "draft",
        "final_price": q.final_price,
        "created_at": q.created_at.isoformat() if q.created_at else None,
    }


def quote_to_dict(q: models.Quote) -> dict:
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "status": q.status.value if q.status else "draft",
        "customer_id": q.customer_id,
        "customer_name": q.customer_name,
        "customer_email": q.customer_email,
        "customer_phone": q.customer_phone,
        "address": q.address,
        "project_type": q.project_type,
        "special_requests": q.special_requests,
        "timeline": q.timeline,
        "created_by": q.created_by.value if q.created_by else None,
        "creation_method": q.creation_method.value if q.creation_method else None,
        "session_id": q.session_id,
        "walls_sqft": q.walls_sqft,
        "ceilings_sqft": q.ceilings_sqft,
        "trim_sqft": q.trim_sqft,
        "walls_rate": q.walls_rate,
        "ceilings_rate": q.ceilings_rate,
        "trim_rate": q.trim_rate,
        "markup_percentage": q.markup_percentage,
        "tax_rate": q.tax_rate,
        "total_materials": q.total_materials,
        "total_labor": q.total_labor,
        "subtotal": q.subtotal,
        "final_price": q.final_price,
        "measurements": q.measurements_json,
        "products": q.products_json,
        "pricing": q.pricing_json,
        "valid_days": q.valid_days,
        "created_at": q.created_at.isoformat() if q.created_at else None,
        "updated_at": q.updated_at.isoformat() if q.updated_at else None,
    }
