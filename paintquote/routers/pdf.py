"""
PDF download endpoint.

GET /api/quotes/{quote_id}/pdf

Auth via the Authorization header, or ?token=<jwt> for direct download
links opened with window.open.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .. import models
from ..auth import decode_token, security
from ..config import settings
from ..database import get_db
from ..pdf_generator import generate_quote_pdf
from .quotes import quote_to_dict

router = APIRouter(prefix="/quotes", tags=["pdf"])


def _resolve_user(db: Session, credentials: Optional[HTTPAuthorizationCredentials],
                  token: Optional[str]) -> models.User:
    raw = token or (credentials.credentials if credentials else None)
    if not raw:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_token(raw, expected_type="access")
    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


@router.get("/{quote_id}/pdf")
def download_pdf(
    quote_id: int,
    token: Optional[str] = Query(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    current_user = _resolve_user(db, credentials, token)

    quote = db.query(models.Quote).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    if quote.user_id is not None and quote.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not your quote")
    if not quote.pricing_json:
        raise HTTPException(status_code=400, detail="Quote has no pricing data")

    company = {
        "company_name": current_user.company_name or settings.COMPANY_NAME,
        "company_address": current_user.company_address,
        "company_phone": current_user.company_phone,
        "company_email": current_user.company_email,
    }
    pdf_bytes = generate_quote_pdf(quote_to_dict(quote), company, created_at=quote.created_at)

    filename = f"Quote-{quote.quote_number or quote_id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
