from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Enum, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    APPROVED = "approved"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class CreationMethod(str, enum.Enum):
    CHAT = "chat"
    WIZARD = "wizard"
    QUICK = "quick"
    IMPORT = "import"


class CreatedBy(str, enum.Enum):
    AI = "ai"
    MANUAL = "manual"
    IMPORT = "import"


PROJECT_TYPES = ["interior", "exterior", "both"]

PAINT_CATEGORIES = ["primer", "wall_paint", "ceiling_paint", "trim_paint"]

QUALITY_TIERS = ["good", "better", "best", "premium"]


class User(Base):
    """Contractor accounts. Each one carries its company's pricing defaults."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=True)  # Nullable for provisional accounts
    is_verified = Column(Boolean, default=False)
    is_provisional = Column(Boolean, default=True)
    company_name = Column(String, nullable=True)
    company_address = Column(Text, nullable=True)
    company_phone = Column(String, nullable=True)
    company_email = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    walls_rate = Column(Float, default=3.00)     # $/sqft
    ceilings_rate = Column(Float, default=2.00)  # $/sqft
    trim_rate = Column(Float, default=5.00)      # $/sqft
    markup_default = Column(Float, default=45.0)
    tax_rate = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    quote_sessions = relationship("QuoteSession", back_populates="user", cascade="all, delete-orphan")
    quotes = relationship("Quote", back_populates="user", foreign_keys="Quote.user_id")


class AuthToken(Base):
    """JWT refresh token storage. Access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


class QuoteSession(Base):
    """Conversation state for the stage-by-stage quote builder."""
    __tablename__ = "quote_sessions"

    id = Column(String, primary_key=True)  # UUID
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    stage = Column(String, default="customer_info")
    params_json = Column(JSON, default=dict)    # Collected fields
    messages_json = Column(JSON, default=list)  # Conversation history
    status = Column(String, default="active")   # 'active' | 'complete' | 'abandoned'
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="quote_sessions")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    quotes = relationship("Quote", back_populates="customer", foreign_keys="Quote.customer_id")


class PaintProduct(Base):
    """Paint catalog: reference data the calculator prices against."""
    __tablename__ = "paint_products"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, nullable=False)  # primer | wall_paint | ceiling_paint | trim_paint
    supplier = Column(String, nullable=False)  # Brand name
    product_name = Column(String, nullable=False)
    cost_per_gallon = Column(Float, nullable=False)
    coverage = Column(Float, default=350.0)    # sqft per gallon
    sheen = Column(String, nullable=True)
    quality = Column(String, default="better")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    quote_number = Column(String, unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    session_id = Column(String, nullable=True)

    # Customer snapshot, kept even if the customer row changes later
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)

    project_type = Column(String, default="interior")
    special_requests = Column(Text, nullable=True)
    timeline = Column(String, nullable=True)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.DRAFT)

    # Creation metadata
    created_by = Column(Enum(CreatedBy), default=CreatedBy.MANUAL)
    creation_method = Column(Enum(CreationMethod), default=CreationMethod.WIZARD)
    ai_provider = Column(String, nullable=True)
    conversation_summary = Column(Text, nullable=True)

    # Denormalized measurements + rates for listing and reporting
    walls_sqft = Column(Float, default=0.0)
    ceilings_sqft = Column(Float, default=0.0)
    trim_sqft = Column(Float, default=0.0)
    walls_rate = Column(Float, default=0.0)
    ceilings_rate = Column(Float, default=0.0)
    trim_rate = Column(Float, default=0.0)
    markup_percentage = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)

    # Totals (rounded to cents)
    total_materials = Column(Float, default=0.0)
    total_labor = Column(Float, default=0.0)
    subtotal = Column(Float, default=0.0)
    final_price = Column(Float, default=0.0)

    # Snapshots for recalculation and rendering
    measurements_json = Column(JSON, nullable=True)
    products_json = Column(JSON, nullable=True)
    pricing_json = Column(JSON, nullable=True)

    valid_days = Column(Integer, default=30)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="quotes", foreign_keys=[customer_id])
    user = relationship("User", back_populates="quotes", foreign_keys=[user_id])
