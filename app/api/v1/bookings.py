from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.pagination import LimitParam, OffsetParam
from app.core.config import settings
from app.core.rate_limiter import enforce_rate_limit
from app.db.models import BookingStatus, User
from app.db.session import get_db
from app.schemas.booking import (
    BookingConfirmRequest,
    BookingCreatedResponse,
    BookingCreateRequest,
    BookingResponse,
    BookingStatusUpdateRequest,
)
from app.services.booking_service import (
    confirm_booking_by_token,
    create_booking,
    get_tenant_booking,
    list_tenant_bookings,
    update_booking_status,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])

IDEMPOTENCY_KEY_MAX_LENGTH = 128


def _normalize_idempotency_key(idempotency_key: str | None) -> str | None:
    if idempotency_key is None:
        return None
    normalized = idempotency_key.strip()
    if not normalized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Idempotency-Key header must not be empty",
        )
    if len(normalized) > IDEMPOTENCY_KEY_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Idempotency-Key header is too long (max {IDEMPOTENCY_KEY_MAX_LENGTH} characters)",
        )
    return normalized


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def book_slot(
    payload: BookingCreateRequest,
    request: Request,
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key")] = None,
    db: Session = Depends(get_db),
) -> BookingCreatedResponse:
    enforce_rate_limit(
        "booking_create",
        request,
        limit=settings.booking_create_max_attempts,
        window_seconds=settings.booking_rate_limit_window_seconds,
    )
    booking = create_booking(
        db=db,
        service_id=payload.service_id,
        resource_id=payload.resource_id,
        start_at=payload.start_at,
        customer=payload.customer,
        idempotency_key=_normalize_idempotency_key(idempotency_key),
    )
    return BookingCreatedResponse(
        booking_id=booking.id,
        status=booking.status,
        resource_id=booking.resource_id,
        start_at=booking.start_at,
        end_at=booking.end_at,
    )


@router.post("/confirm", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def confirm_booking(payload: BookingConfirmRequest, db: Session = Depends(get_db)) -> BookingResponse:
    booking = confirm_booking_by_token(db=db, token=payload.token)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def change_booking_status(
    booking_id: int,
    payload: BookingStatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = update_booking_status(
        db=db,
        tenant_id=current_user.tenant_id,
        booking_id=booking_id,
        new_status=payload.status,
    )
    return BookingResponse.model_validate(booking)


@router.get("", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings(
    resource_id: int | None = Query(default=None),
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = list_tenant_bookings(
        db=db,
        tenant_id=current_user.tenant_id,
        resource_id=resource_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking_by_id(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = get_tenant_booking(db=db, tenant_id=current_user.tenant_id, booking_id=booking_id)
    return BookingResponse.model_validate(booking)
