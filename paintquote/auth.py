"""
Contractor authentication: bcrypt password hashes and JWT access/refresh tokens.

Access tokens are stateless. Refresh tokens are also stored as SHA-256
hashes so they can be looked up and revoked.
"""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def authenticate(db: Session, email: str, password: str) -> Optional[models.User]:
    """The user for these credentials, or None. Provisional accounts have no password."""
    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None or not user.password_hash:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# --- Tokens ---

def _jwt_secret() -> str:
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured",
        )
    return settings.JWT_SECRET


def _encode(user_id: int, token_type: str, lifetime: timedelta, **claims) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.utcnow() + lifetime,
        "type": token_type,
        **claims,
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _encode(user_id, "access", timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))


def create_refresh_token(user_id: int) -> str:
    # jti keeps two refresh tokens issued in the same second distinct
    return _encode(user_id, "refresh", timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
                   jti=str(uuid.uuid4()))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str, expected_type: Optional[str] = None) -> dict:
    """Decode a JWT, optionally checking its type. 401 on any failure."""
    try:
        payload = jwt.decode(token, _jwt_secret(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    if expected_type and payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token type, expected {expected_type} token",
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return payload


def store_refresh_token(db: Session, user_id: int, token: str) -> models.AuthToken:
    db_token = models.AuthToken(
        user_id=user_id,
        token_hash=hash_token(token),
        token_type="refresh",
        expires_at=datetime.utcnow() + timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
    )
    db.add(db_token)
    db.commit()
    return db_token


def issue_tokens(db: Session, user: models.User) -> dict:
    """Access + refresh pair for a user; the refresh hash is persisted."""
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)
    store_refresh_token(db, user.id, refresh_token)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user_id": user.id,
    }


# --- Dependencies ---

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> models.User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_token(credentials.credentials, expected_type="access")
    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
