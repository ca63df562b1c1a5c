"""
Turns collected conversation fields into calculator inputs.

Surfaces the contractor didn't select are zeroed out, whatever the
measurement method produced for them.
"""

from typing import Callable, Optional

from ..calculators.pricing_config import DEFAULT_PRICING_CONFIG, PricingConfig
from ..calculators.measurements import estimate_measurements
from ..calculators.progressive import PartialQuoteData
from ..calculators.types import PaintProduct, ProductSelections, ProjectMeasurements, RoomMeasurements

ProductLookup = Callable[[int], Optional[PaintProduct]]

PAINT_FIELDS = ("primer", "wall_paint", "ceiling_paint", "trim_paint")


def build_measurements(fields: dict, config: Optional[PricingConfig] = None) -> Optional[ProjectMeasurements]:
    """ProjectMeasurements for the chosen method, or None while incomplete."""
    method = fields.get("measurement_method")
    surfaces = fields.get("surfaces") or ["walls", "ceilings", "trim"]

    if method == "floor_area" and fields.get("total_sqft") is not None:
        estimated = estimate_measurements(
            fields["total_sqft"], fields.get("project_type") or "interior", config,
        )
        return _limit_to_surfaces(estimated, surfaces)

    if method == "surface_totals":
        values = {s: fields.get(f"{s}_sqft") for s in surfaces}
        if any(v is None for v in values.values()):
            return None
        return ProjectMeasurements.from_totals(
            walls=values.get("walls", 0.0),
            ceilings=values.get("ceilings", 0.0),
            trim=values.get("trim", 0.0),
        )

    if method == "rooms" and fields.get("rooms"):
        rooms = [RoomMeasurements.model_validate(r) for r in fields["rooms"]]
        return _limit_to_surfaces(ProjectMeasurements.from_rooms(rooms), surfaces)

    return None


def _limit_to_surfaces(measurements: ProjectMeasurements, surfaces: list) -> ProjectMeasurements:
    if {"walls", "ceilings", "trim"} <= set(surfaces):
        return measurements
    rooms = [
        r.model_copy(update={
            "walls_square_footage": r.walls_square_footage if "walls" in surfaces else 0.0,
            "ceilings_square_footage": r.ceilings_square_footage if "ceilings" in surfaces else 0.0,
            "trim_square_footage": r.trim_square_footage if "trim" in surfaces else 0.0,
        })
        for r in measurements.rooms
    ]
    return ProjectMeasurements(
        total_walls_sqft=measurements.total_walls_sqft if "walls" in surfaces else 0.0,
        total_ceilings_sqft=measurements.total_ceilings_sqft if "ceilings" in surfaces else 0.0,
        total_trim_sqft=measurements.total_trim_sqft if "trim" in surfaces else 0.0,
        rooms=rooms,
    )


def build_product_selections(fields: dict, lookup: Optional[ProductLookup] = None,
                             config: Optional[PricingConfig] = None) -> ProductSelections:
    """
    Paint answers to ProductSelections.

    {"product_id": n} resolves through the catalog lookup; {"quality": tier}
    becomes a stand-in product priced from the default cost table so each
    category can have its own tier.
    """
    config = config or DEFAULT_PRICING_CONFIG
    selected = {}
    paint_quality = "better"

    for category in PAINT_FIELDS:
        answer = fields.get(category)
        if not answer or answer.get("none"):
            continue
        product = None
        if answer.get("product_id") is not None and lookup is not None:
            product = lookup(answer["product_id"])
        elif answer.get("quality"):
            product = default_product(category, answer["quality"], config)
        if product is not None:
            selected[category] = product
            if category == "wall_paint":
                paint_quality = product.quality

    return ProductSelections(paint_quality=paint_quality, **selected)


def default_product(category: str, quality: str, config: Optional[PricingConfig] = None) -> PaintProduct:
    config = config or DEFAULT_PRICING_CONFIG
    label = category.replace("_", " ").title()
    return PaintProduct(
        category=category,
        supplier="Standard",
        product_name=f"{quality.title()} {label}",
        cost_per_gallon=config.default_cost(category, quality),
        coverage=config.coverage_sqft_per_gallon,
        quality=quality,
    )


def paint_selected(fields: dict, queue: list[str]) -> bool:
    return bool(queue) and all(fields.get(c) for c in queue)


def build_partial_data(fields: dict, queue: list[str],
                       lookup: Optional[ProductLookup] = None) -> PartialQuoteData:
    """Snapshot for the progressive estimator."""
    return PartialQuoteData(
        customer_name=fields.get("customer_name"),
        address=fields.get("address"),
        project_type=fields.get("project_type"),
        surfaces=fields.get("surfaces") or [],
        measurements=build_measurements(fields),
        products=build_product_selections(fields, lookup),
        paint_selected=paint_selected(fields, queue),
        markup_percentage=fields.get("markup_percentage"),
    )
