"""
Value types shared by the pricing calculators.

All models are frozen: a calculation never mutates its inputs, and a
PricingDetails snapshot is replaced (never edited) when inputs change.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProjectType = Literal["interior", "exterior", "both"]
QualityTier = Literal["good", "better", "best", "premium"]
PaintCategory = Literal["primer", "wall_paint", "ceiling_paint", "trim_paint"]
RoomType = Literal["bedroom", "bathroom", "kitchen", "living", "dining", "hallway", "office", "other"]


class RoomMeasurements(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: RoomType = "other"
    walls_square_footage: float = 0.0
    ceilings_square_footage: float = 0.0
    trim_square_footage: float = 0.0
    ceiling_height: Optional[float] = None
    doors: Optional[int] = None
    windows: Optional[int] = None
    notes: Optional[str] = None


class ProjectMeasurements(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_walls_sqft: float = 0.0
    total_ceilings_sqft: float = 0.0
    total_trim_sqft: float = 0.0
    rooms: list[RoomMeasurements] = Field(default_factory=list)

    @classmethod
    def from_rooms(cls, rooms: list[RoomMeasurements]) -> "ProjectMeasurements":
        """Totals are the sums of the room areas."""
        return cls(
            total_walls_sqft=sum(r.walls_square_footage for r in rooms),
            total_ceilings_sqft=sum(r.ceilings_square_footage for r in rooms),
            total_trim_sqft=sum(r.trim_square_footage for r in rooms),
            rooms=list(rooms),
        )

    @classmethod
    def from_totals(cls, walls: float = 0.0, ceilings: float = 0.0, trim: float = 0.0,
                    room_name: str = "Main Area") -> "ProjectMeasurements":
        """Simple measurements: one synthetic room mirroring the totals."""
        return cls(
            total_walls_sqft=walls,
            total_ceilings_sqft=ceilings,
            total_trim_sqft=trim,
            rooms=[RoomMeasurements(
                name=room_name,
                type="other",
                walls_square_footage=walls,
                ceilings_square_footage=ceilings,
                trim_square_footage=trim,
            )],
        )


class PaintProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    category: PaintCategory
    supplier: str
    product_name: str
    cost_per_gallon: float
    coverage: float = 350.0
    sheen: Optional[str] = None
    quality: QualityTier = "better"


class ProductSelections(BaseModel):
    model_config = ConfigDict(frozen=True)

    primer: Optional[PaintProduct] = None
    wall_paint: Optional[PaintProduct] = None
    ceiling_paint: Optional[PaintProduct] = None
    trim_paint: Optional[PaintProduct] = None
    paint_quality: QualityTier = "better"


class CompanyDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    walls_rate: float
    ceilings_rate: float
    trim_rate: float
    markup_percentage: float
    tax_rate: float = 0.0


class PricingOverrides(BaseModel):
    model_config = ConfigDict(frozen=True)

    walls_rate: Optional[float] = None
    ceilings_rate: Optional[float] = None
    trim_rate: Optional[float] = None
    markup_percentage: Optional[float] = None
    tax_rate: Optional[float] = None


class QuoteCalculationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    measurements: ProjectMeasurements
    products: ProductSelections = Field(default_factory=ProductSelections)
    company_defaults: CompanyDefaults
    overrides: PricingOverrides = Field(default_factory=PricingOverrides)


class PricingBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    walls_cost: float
    ceilings_cost: float
    trim_cost: float
    sundries: float
    profit: float


class PricingDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    walls_rate: float
    ceilings_rate: float
    trim_rate: float
    total_material_cost: float
    total_labor_cost: float
    subtotal: float
    markup_percentage: float
    markup_amount: float
    tax_rate: float
    tax_amount: float
    final_price: float
    breakdown: PricingBreakdown

    def rounded(self) -> dict:
        """Dollar amounts rounded to cents, as stored and displayed."""
        data = self.model_dump()
        for key in ("total_material_cost", "total_labor_cost", "subtotal",
                    "markup_amount", "tax_amount", "final_price"):
            data[key] = round(data[key], 2)
        data["breakdown"] = {k: round(v, 2) for k, v in data["breakdown"].items()}
        return data


class RateOverrides(BaseModel):
    """Per-surface labor rates that replace the saved ones. Unknown keys are rejected."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    walls: Optional[float] = None
    ceilings: Optional[float] = None
    trim: Optional[float] = None


class QuoteChanges(BaseModel):
    """Edits applied by recalculate_quote. Absent keys keep the existing value."""
    model_config = ConfigDict(frozen=True)

    measurements: Optional[dict] = None
    products: Optional[dict] = None
    rate_overrides: Optional[RateOverrides] = None
    markup_override: Optional[float] = None


class ExistingQuoteData(BaseModel):
    """The parts of a stored quote that recalculation needs."""
    model_config = ConfigDict(frozen=True)

    measurements: ProjectMeasurements
    products: ProductSelections = Field(default_factory=ProductSelections)
    pricing: PricingDetails


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
