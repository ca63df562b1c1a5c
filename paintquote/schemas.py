from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from .calculators.types import PaintCategory, QualityTier


class CustomerBase(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class Customer(CustomerBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class PaintProductBase(BaseModel):
    category: PaintCategory
    supplier: str
    product_name: str
    cost_per_gallon: float
    coverage: float = 350.0
    sheen: Optional[str] = None
    quality: QualityTier = "better"


class PaintProductCreate(PaintProductBase):
    pass


class PaintProduct(PaintProductBase):
    id: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
