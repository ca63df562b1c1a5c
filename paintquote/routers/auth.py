"""
Auth endpoints: register, login, refresh, guest, me, company profile.

Guest accounts are provisional: no password, quoting works immediately.
Registering with a provisional account's email sets its password instead of
creating a second user.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import models
from ..auth import (
    authenticate,
    create_access_token,
    decode_token,
    get_current_user,
    hash_password,
    hash_token,
    issue_tokens,
)
from ..config import settings
from ..database import get_db

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    company_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    company_phone: Optional[str] = None
    company_email: Optional[str] = None
    logo_url: Optional[str] = None
    walls_rate: Optional[float] = Field(default=None, ge=0)
    ceilings_rate: Optional[float] = Field(default=None, ge=0)
    trim_rate: Optional[float] = Field(default=None, ge=0)
    markup_default: Optional[float] = Field(default=None, ge=0)
    tax_rate: Optional[float] = Field(default=None, ge=0)


def _user_to_response(user: models.User) -> dict:
    """Never expose password_hash."""
    return {
        "id": user.id,
        "email": user.email,
        "is_verified": user.is_verified,
        "is_provisional": user.is_provisional,
        "company_name": user.company_name,
        "company_address": user.company_address,
        "company_phone": user.company_phone,
        "company_email": user.company_email,
        "logo_url": user.logo_url,
        "walls_rate": user.walls_rate,
        "ceilings_rate": user.ceilings_rate,
        "trim_rate": user.trim_rate,
        "markup_default": user.markup_default,
        "tax_rate": user.tax_rate,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _new_user(**kwargs) -> models.User:
    """User row seeded with the configured company rate defaults."""
    return models.User(
        walls_rate=settings.WALLS_RATE_DEFAULT,
        ceilings_rate=settings.CEILINGS_RATE_DEFAULT,
        trim_rate=settings.TRIM_RATE_DEFAULT,
        markup_default=settings.MARKUP_DEFAULT,
        tax_rate=settings.TAX_RATE_DEFAULT,
        **kwargs,
    )


@router.post("/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account, or claim a provisional one with the same email.
    """
    existing = db.query(models.User).filter(models.User.email == request.email).first()

    if existing:
        if not (existing.is_provisional and not existing.password_hash):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Account with this email already exists",
            )
        existing.password_hash = hash_password(request.password)
        existing.is_provisional = False
        if request.company_name:
            existing.company_name = request.company_name
        existing.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(existing)
        return {**issue_tokens(db, existing), "user": _user_to_response(existing),
                "claimed_provisional": True}

    user = _new_user(
        email=request.email,
        password_hash=hash_password(request.password),
        company_name=request.company_name,
        is_provisional=False,
        is_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {**issue_tokens(db, user), "user": _user_to_response(user)}


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, request.email, request.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return {**issue_tokens(db, user), "user": _user_to_response(user)}


@router.post("/refresh")
def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a stored, unexpired refresh token for a new access token."""
    payload = decode_token(request.refresh_token, expected_type="refresh")

    db_token = db.query(models.AuthToken).filter(
        models.AuthToken.token_hash == hash_token(request.refresh_token),
        models.AuthToken.token_type == "refresh",
    ).first()
    if not db_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token not found, it may have been revoked",
        )
    if db_token.expires_at < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired",
        )

    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user_id": user.id,
    }


@router.post("/guest")
def guest(db: Session = Depends(get_db)):
    """Provisional account with no password. Quoting works right away."""
    user = _new_user(
        email=f"guest_{uuid.uuid4().hex[:12]}@provisional.local",
        password_hash=None,
        is_provisional=True,
        is_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {**issue_tokens(db, user), "user": _user_to_response(user)}


@router.get("/me")
def me(current_user: models.User = Depends(get_current_user)):
    return _user_to_response(current_user)


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Company details and the rate defaults new quotes start from."""
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    current_user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(current_user)
    return _user_to_response(current_user)
