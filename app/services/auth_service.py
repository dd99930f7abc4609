import logging
import re
from uuid import uuid4

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import create_access_token, get_password_hash, verify_password
from app.db.models import Tenant, User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger("app.auth")

EMAIL_TAKEN_DETAIL = "User with this email already exists"


def _slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "tenant"


def _unique_slug(db: Session, name: str) -> str:
    slug = _slugify(name)
    if not db.scalar(select(Tenant.id).where(Tenant.slug == slug)):
        return slug
    return f"{slug}-{uuid4().hex[:6]}"


def register_user(payload: RegisterRequest, db: Session) -> User:
    """Create a tenant together with its first staff account."""
    email = payload.email.lower()
    if db.scalar(select(User).where(User.email == email)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN_DETAIL)

    tenant = Tenant(
        name=payload.tenant_name,
        slug=_unique_slug(db, payload.tenant_name),
        timezone=payload.timezone,
        requires_booking_confirmation=payload.requires_booking_confirmation,
        slot_granularity_minutes=payload.slot_granularity_minutes,
    )
    user = User(email=email, hashed_password=get_password_hash(payload.password), tenant=tenant)
    db.add_all([tenant, user])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN_DETAIL) from None
    db.refresh(user)
    logger.info("tenant_registered tenant_id=%s user_id=%s timezone=%s", tenant.id, user.id, tenant.timezone)
    return user


def login_user(payload: LoginRequest, db: Session) -> TokenResponse:
    email = payload.email.lower()
    user = db.scalar(select(User).where(User.email == email))
    if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = create_access_token(subject=str(user.id), tenant_id=user.tenant_id, extra_claims={"email": user.email})
    return TokenResponse(access_token=token)
