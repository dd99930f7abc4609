import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidInputError, NotFoundError
from app.core.metrics import SLOT_QUERY_LATENCY
from app.db.models import AvailabilityWindow, Blockout, Booking, BookingStatus, Resource, Service
from app.scheduling.availability import BookedInterval, query_window
from app.scheduling.intervals import Interval
from app.scheduling.pool import CandidateSlot, ResourceSchedule, collect_pool_slots
from app.scheduling.slots import resolve_granularity
from app.scheduling.weekly import WeeklySchedule
from app.services.tenant_service import tenant_timezone

logger = logging.getLogger("app.slots")


@dataclass(frozen=True)
class PoolSnapshot:
    """Everything the read path needs for one query, detached from the session."""

    tz: ZoneInfo
    start_date: date
    end_date: date
    duration: timedelta
    granularity: timedelta
    schedules: tuple[ResourceSchedule, ...]

    def slots(self) -> list[CandidateSlot]:
        return collect_pool_slots(
            self.schedules,
            self.start_date,
            self.end_date,
            self.tz,
            self.duration,
            self.granularity,
            max_workers=settings.slot_query_workers,
        )


def validate_date_range(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise InvalidInputError("end_date must be after start_date")
    if (end_date - start_date).days > settings.slot_query_max_days:
        raise InvalidInputError(f"Date range cannot exceed {settings.slot_query_max_days} days")


def get_bookable_service(db: Session, service_id: int) -> Service:
    service = db.scalar(select(Service).where(Service.id == service_id))
    if not service or not service.is_active:
        raise NotFoundError("Service not found")
    return service


def pool_resources(service: Service, resource_id: int | None = None) -> list[Resource]:
    """Active resources of the service's pool, optionally narrowed to one pinned resource."""
    resources = list(service.resources)
    if resource_id is not None:
        resources = [resource for resource in resources if resource.id == resource_id]
        if not resources:
            raise NotFoundError("Resource not found for this service")
    return [resource for resource in resources if resource.is_active]


def load_resource_schedules(db: Session, resources: Sequence[Resource], window: Interval) -> list[ResourceSchedule]:
    if not resources:
        return []

    resource_ids = [resource.id for resource in resources]
    windows = db.scalars(
        select(AvailabilityWindow).where(AvailabilityWindow.resource_id.in_(resource_ids))
    ).all()
    blockouts = db.scalars(
        select(Blockout).where(
            Blockout.resource_id.in_(resource_ids),
            Blockout.start_at < window.end,
            Blockout.end_at > window.start,
        )
    ).all()
    bookings = db.scalars(
        select(Booking).where(
            Booking.resource_id.in_(resource_ids),
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.start_at < window.end,
            Booking.end_at > window.start,
        )
    ).all()

    windows_by_resource: dict[int, list[AvailabilityWindow]] = defaultdict(list)
    for availability_window in windows:
        windows_by_resource[availability_window.resource_id].append(availability_window)
    blockouts_by_resource: dict[int, list[Interval]] = defaultdict(list)
    for blockout in blockouts:
        blockouts_by_resource[blockout.resource_id].append(Interval(blockout.start_at, blockout.end_at))
    bookings_by_resource: dict[int, list[BookedInterval]] = defaultdict(list)
    for booking in bookings:
        bookings_by_resource[booking.resource_id].append(BookedInterval.of(booking))

    return [
        ResourceSchedule(
            resource_id=resource.id,
            sort_order=resource.sort_order,
            weekly=WeeklySchedule.from_windows(windows_by_resource[resource.id]),
            blockouts=tuple(blockouts_by_resource[resource.id]),
            bookings=tuple(bookings_by_resource[resource.id]),
        )
        for resource in resources
    ]


def build_pool_snapshot(
    db: Session,
    service: Service,
    start_date: date,
    end_date: date,
    resources: Sequence[Resource],
) -> PoolSnapshot:
    tenant = service.tenant
    tz = tenant_timezone(tenant)
    window = query_window(start_date, end_date, tz)
    return PoolSnapshot(
        tz=tz,
        start_date=start_date,
        end_date=end_date,
        duration=timedelta(minutes=service.duration_minutes),
        granularity=resolve_granularity(
            service.slot_granularity_minutes,
            tenant.slot_granularity_minutes,
            settings.default_slot_granularity_minutes,
        ),
        schedules=tuple(load_resource_schedules(db, resources, window)),
    )


def get_slots(
    db: Session,
    service_id: int,
    start_date: date,
    end_date: date,
    resource_id: int | None = None,
) -> list[CandidateSlot]:
    validate_date_range(start_date, end_date)
    service = get_bookable_service(db, service_id)
    resources = pool_resources(service, resource_id)

    with SLOT_QUERY_LATENCY.time():
        snapshot = build_pool_snapshot(db, service, start_date, end_date, resources)
        slots = snapshot.slots()

    logger.info(
        "slots_computed service_id=%s resources=%s start_date=%s end_date=%s slots=%s",
        service.id,
        len(resources),
        start_date,
        end_date,
        len(slots),
    )
    return slots
