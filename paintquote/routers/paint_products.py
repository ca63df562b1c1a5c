from collections import defaultdict
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..calculators.types import PaintProduct
from ..database import get_db

router = APIRouter(prefix="/paint-products", tags=["paint-products"])

# Common contractor picks per category, used when the catalog is empty.
# cost_per_gallon is contractor cost, before markup.
DEFAULT_PAINT_PRODUCTS = [
    {"category": "primer", "supplier": "Kilz", "product_name": "Premium Primer", "cost_per_gallon": 28, "quality": "good"},
    {"category": "primer", "supplier": "Zinsser", "product_name": "Bulls Eye 1-2-3", "cost_per_gallon": 35, "quality": "better"},
    {"category": "primer", "supplier": "Sherwin-Williams", "product_name": "ProBlock", "cost_per_gallon": 42, "quality": "best"},
    {"category": "wall_paint", "supplier": "Behr", "product_name": "Premium Plus Ultra", "cost_per_gallon": 48, "quality": "good", "sheen": "eggshell"},
    {"category": "wall_paint", "supplier": "Sherwin-Williams", "product_name": "ProClassic", "cost_per_gallon": 58, "quality": "better", "sheen": "eggshell"},
    {"category": "wall_paint", "supplier": "Benjamin Moore", "product_name": "Regal Select", "cost_per_gallon": 68, "quality": "best", "sheen": "eggshell"},
    {"category": "ceiling_paint", "supplier": "Behr", "product_name": "Premium Plus", "cost_per_gallon": 38, "quality": "good", "sheen": "flat"},
    {"category": "ceiling_paint", "supplier": "Sherwin-Williams", "product_name": "ProMar 200", "cost_per_gallon": 45, "quality": "better", "sheen": "flat"},
    {"category": "ceiling_paint", "supplier": "Benjamin Moore", "product_name": "Waterborne Ceiling", "cost_per_gallon": 55, "quality": "best", "sheen": "flat"},
    {"category": "trim_paint", "supplier": "Sherwin-Williams", "product_name": "ProClassic", "cost_per_gallon": 58, "quality": "good", "sheen": "semi-gloss"},
    {"category": "trim_paint", "supplier": "Benjamin Moore", "product_name": "Advance", "cost_per_gallon": 68, "quality": "better", "sheen": "semi-gloss"},
    {"category": "trim_paint", "supplier": "Benjamin Moore", "product_name": "Aura", "cost_per_gallon": 85, "quality": "best", "sheen": "semi-gloss"},
]

# Listed first in /brands, in this order
BRAND_PRIORITY = ["Sherwin-Williams", "Benjamin Moore", "Behr", "PPG", "Kilz", "Zinsser"]


def seed_paint_products(db: Session) -> int:
    """Insert any default product not already in the catalog. Returns rows added."""
    added = 0
    for data in DEFAULT_PAINT_PRODUCTS:
        existing = db.query(models.PaintProduct).filter(
            models.PaintProduct.supplier == data["supplier"],
            models.PaintProduct.product_name == data["product_name"],
            models.PaintProduct.category == data["category"],
        ).first()
        if not existing:
            db.add(models.PaintProduct(**data))
            added += 1
    db.commit()
    return added


def lookup_product(db: Session, product_id: int) -> Optional[PaintProduct]:
    """Catalog row as the calculator's PaintProduct, or None."""
    row = db.query(models.PaintProduct).filter(models.PaintProduct.id == product_id).first()
    if row is None:
        return None
    return PaintProduct(
        id=row.id,
        category=row.category,
        supplier=row.supplier,
        product_name=row.product_name,
        cost_per_gallon=row.cost_per_gallon,
        coverage=row.coverage or 350.0,
        sheen=row.sheen,
        quality=row.quality or "better",
    )


@router.get("/seed")
def seed_products(db: Session = Depends(get_db)):
    added = seed_paint_products(db)
    return {"ok": True, "seeded": added}


@router.get("/", response_model=List[schemas.PaintProduct])
def list_products(category: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(models.PaintProduct)
    if category:
        query = query.filter(models.PaintProduct.category == category)
    return query.order_by(models.PaintProduct.category, models.PaintProduct.cost_per_gallon).all()


@router.post("/", response_model=schemas.PaintProduct)
def create_product(product: schemas.PaintProductCreate, db: Session = Depends(get_db)):
    db_product = models.PaintProduct(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


@router.get("/brands")
def list_brands(db: Session = Depends(get_db)):
    """Catalog grouped by supplier, then category. Popular brands first."""
    grouped = defaultdict(lambda: defaultdict(list))
    rows = db.query(models.PaintProduct).order_by(models.PaintProduct.cost_per_gallon).all()
    for row in rows:
        grouped[row.supplier or "Other"][row.category].append({
            "id": row.id,
            "product_name": row.product_name,
            "cost_per_gallon": row.cost_per_gallon,
            "sheen": row.sheen,
            "quality": row.quality,
        })

    def sort_key(brand):
        if brand in BRAND_PRIORITY:
            return (0, BRAND_PRIORITY.index(brand), brand)
        return (1, 0, brand)

    brands = [
        {"brand": brand, "products": dict(grouped[brand])}
        for brand in sorted(grouped, key=sort_key)
    ]
    return {"brands": brands, "total_brands": len(brands)}
