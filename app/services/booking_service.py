import logging
import secrets
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    IdempotencyConflictError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    SlotConflictError,
)
from app.core.metrics import BOOKING_CONFLICTS, BOOKINGS_CREATED
from app.db.models import Booking, BookingStatus, Resource, Service
from app.scheduling.availability import query_window, resolve_free_intervals
from app.scheduling.intervals import Interval
from app.scheduling.pool import pick_resource_for_start
from app.schemas.booking import CustomerPayload
from app.services.slot_service import build_pool_snapshot, get_bookable_service, load_resource_schedules, pool_resources
from app.services.tenant_service import tenant_timezone

logger = logging.getLogger("app.bookings")

SLOT_TAKEN_DETAIL = "Requested time is no longer available. Refresh the slot list."
OUTSIDE_AVAILABILITY_DETAIL = "Requested time is outside the resource's availability. Refresh the slot list."
NO_RESOURCE_AVAILABLE_DETAIL = "No resource is available at the requested time. Refresh the slot list."
IDEMPOTENCY_KEY_REUSE_DETAIL = "Idempotency key already used with different booking parameters"

_resource_locks: dict[int, threading.Lock] = {}
_resource_locks_guard = threading.Lock()


@contextmanager
def resource_lock(resource_id: int) -> Iterator[None]:
    """Serialize reservation attempts for one resource within this process.

    Cross-process exclusion comes from the row lock taken in
    ``_lock_resource_row`` and the storage constraints on ``bookings``.
    """
    with _resource_locks_guard:
        lock = _resource_locks.setdefault(resource_id, threading.Lock())
    with lock:
        yield


def _is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def _lock_resource_row(db: Session, resource_id: int) -> None:
    query = select(Resource.id).where(Resource.id == resource_id)
    if _is_postgresql_session(db):
        query = query.with_for_update()
    db.scalar(query)


def _local_day_span(start_at: datetime, end_at: datetime, tz: tzinfo) -> tuple[date, date]:
    first_day = start_at.astimezone(tz).date()
    last_day = (end_at - timedelta(microseconds=1)).astimezone(tz).date()
    return first_day, last_day + timedelta(days=1)


def find_overlapping_bookings(db: Session, resource_id: int, start_at: datetime, end_at: datetime) -> list[Booking]:
    return list(
        db.scalars(
            select(Booking).where(
                Booking.resource_id == resource_id,
                Booking.status != BookingStatus.CANCELLED.value,
                Booking.start_at < end_at,
                Booking.end_at > start_at,
            )
        ).all()
    )


def _ensure_within_availability(db: Session, resource: Resource, tz: tzinfo, requested: Interval) -> None:
    start_date, end_date = _local_day_span(requested.start, requested.end, tz)
    window = query_window(start_date, end_date, tz)
    schedule = load_resource_schedules(db, [resource], window)[0]
    free = resolve_free_intervals(schedule.weekly, schedule.blockouts, start_date, end_date, tz)
    if not any(interval.contains(requested) for interval in free):
        raise SlotConflictError(OUTSIDE_AVAILABILITY_DETAIL)


def _get_booking_by_idempotency_key(db: Session, tenant_id: int, idempotency_key: str) -> Booking | None:
    return db.scalar(
        select(Booking).where(
            Booking.tenant_id == tenant_id,
            Booking.idempotency_key == idempotency_key,
        )
    )


def _replay_idempotent_booking(
    db: Session,
    service: Service,
    resource_id: int | None,
    start_at: datetime,
    idempotency_key: str | None,
) -> Booking | None:
    if not idempotency_key:
        return None
    existing = _get_booking_by_idempotency_key(db, service.tenant_id, idempotency_key)
    if not existing:
        return None
    same_request = (
        existing.service_id == service.id
        and existing.start_at == start_at
        and (resource_id is None or existing.resource_id == resource_id)
    )
    if not same_request:
        raise IdempotencyConflictError(IDEMPOTENCY_KEY_REUSE_DETAIL)
    return existing


def select_resource_for_start(db: Session, service: Service, start_at: datetime) -> int:
    """Resolve an "any available resource" request to one concrete resource id."""
    tz = tenant_timezone(service.tenant)
    local_day = start_at.astimezone(tz).date()
    snapshot = build_pool_snapshot(db, service, local_day, local_day + timedelta(days=1), pool_resources(service))
    resource_id = pick_resource_for_start(snapshot.slots(), snapshot.schedules, start_at, tz)
    if resource_id is None:
        BOOKING_CONFLICTS.inc()
        raise SlotConflictError(NO_RESOURCE_AVAILABLE_DETAIL)
    logger.info(
        "resource_selected service_id=%s resource_id=%s start_at=%s",
        service.id,
        resource_id,
        start_at.isoformat(),
    )
    return resource_id


def create_booking(
    db: Session,
    service_id: int,
    resource_id: int | None,
    start_at: datetime,
    customer: CustomerPayload,
    idempotency_key: str | None = None,
) -> Booking:
    if start_at.tzinfo is None:
        raise InvalidInputError("start_at must include a timezone offset")
    start_at = start_at.astimezone(UTC)

    service = get_bookable_service(db, service_id)
    replayed = _replay_idempotent_booking(db, service, resource_id, start_at, idempotency_key)
    if replayed:
        return replayed

    end_at = start_at + timedelta(minutes=service.duration_minutes)
    if resource_id is None:
        resource_id = select_resource_for_start(db, service, start_at)
    resources = pool_resources(service, resource_id)
    if not resources:
        raise NotFoundError("Resource not found for this service")
    resource = resources[0]
    tenant = service.tenant
    tz = tenant_timezone(tenant)
    requires_confirmation = tenant.requires_booking_confirmation

    try:
        with resource_lock(resource.id):
            _lock_resource_row(db, resource.id)
            _ensure_within_availability(db, resource, tz, Interval(start_at, end_at))
            if find_overlapping_bookings(db, resource.id, start_at, end_at):
                raise SlotConflictError(SLOT_TAKEN_DETAIL)

            booking = Booking(
                tenant_id=service.tenant_id,
                service_id=service.id,
                resource_id=resource.id,
                customer_name=customer.name.strip(),
                customer_email=str(customer.email).lower(),
                customer_phone=customer.phone,
                start_at=start_at,
                end_at=end_at,
                status=(BookingStatus.PENDING if requires_confirmation else BookingStatus.CONFIRMED).value,
                confirmation_token=secrets.token_urlsafe(32) if requires_confirmation else None,
                idempotency_key=idempotency_key,
            )
            db.add(booking)
            db.commit()
    except SlotConflictError:
        db.rollback()
        BOOKING_CONFLICTS.inc()
        logger.info(
            "booking_conflict resource_id=%s start_at=%s end_at=%s",
            resource_id,
            start_at.isoformat(),
            end_at.isoformat(),
        )
        raise
    except IntegrityError:
        db.rollback()
        replayed = _replay_idempotent_booking(db, service, resource_id, start_at, idempotency_key)
        if replayed:
            return replayed
        BOOKING_CONFLICTS.inc()
        logger.info("booking_conflict_constraint resource_id=%s start_at=%s", resource_id, start_at.isoformat())
        raise SlotConflictError(SLOT_TAKEN_DETAIL) from None
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(booking)
    BOOKINGS_CREATED.labels(status=booking.status).inc()
    logger.info(
        "booking_created booking_id=%s resource_id=%s service_id=%s status=%s start_at=%s",
        booking.id,
        booking.resource_id,
        booking.service_id,
        booking.status,
        booking.start_at.isoformat(),
    )
    return booking


def get_tenant_booking(db: Session, tenant_id: int, booking_id: int, for_update: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id, Booking.tenant_id == tenant_id)
    if for_update:
        query = query.with_for_update()
    booking = db.scalar(query)
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def update_booking_status(db: Session, tenant_id: int, booking_id: int, new_status: BookingStatus) -> Booking:
    booking = get_tenant_booking(db, tenant_id, booking_id, for_update=True)
    previous_status = booking.status
    try:
        booking.transition_to(new_status)
        db.commit()
    except (InvalidTransitionError, SQLAlchemyError):
        db.rollback()
        raise
    db.refresh(booking)
    logger.info(
        "booking_status_changed booking_id=%s from=%s to=%s",
        booking.id,
        previous_status,
        booking.status,
    )
    return booking


def confirm_booking_by_token(db: Session, token: str) -> Booking:
    booking = db.scalar(select(Booking).where(Booking.confirmation_token == token).with_for_update())
    if not booking:
        raise NotFoundError("Confirmation token is invalid")
    try:
        booking.transition_to(BookingStatus.CONFIRMED)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(booking)
    logger.info("booking_confirmed booking_id=%s", booking.id)
    return booking


def list_tenant_bookings(
    db: Session,
    tenant_id: int,
    resource_id: int | None = None,
    status: BookingStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Booking]:
    query = select(Booking).where(Booking.tenant_id == tenant_id)
    if resource_id is not None:
        query = query.where(Booking.resource_id == resource_id)
    if status:
        query = query.where(Booking.status == status.value)
    if date_from:
        query = query.where(Booking.start_at >= datetime.combine(date_from, time.min, tzinfo=UTC))
    if date_to:
        query = query.where(Booking.start_at < datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=UTC))
    return list(db.scalars(query.order_by(Booking.start_at, Booking.id).limit(limit).offset(offset)).all())
