from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .database import engine, Base, SessionLocal
from .routers import auth, calculator, customers, paint_products, pdf, quote_session, quotes

logger = logging.getLogger("paintquote")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Paint Quote API",
    description="Quoting backend for painting contractors",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api")
app.include_router(calculator.router, prefix="/api")
app.include_router(quotes.router, prefix="/api")
app.include_router(pdf.router, prefix="/api")
app.include_router(quote_session.router, prefix="/api")
app.include_router(paint_products.router, prefix="/api")
app.include_router(customers.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "paintquote-api"}


@app.on_event("startup")
def auto_seed():
    """Seed the paint catalog on first run."""
    db = SessionLocal()
    try:
        added = paint_products.seed_paint_products(db)
        if added:
            logger.info("Seeded %d paint products", added)
    finally:
        db.close()
