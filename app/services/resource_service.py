import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidInputError, NotFoundError
from app.db.models import AvailabilityWindow, Blockout, Resource, ResourceStatus
from app.schemas.resource import BlockoutCreateRequest, ResourceCreateRequest, WeeklyAvailabilityRequest
from app.scheduling.weekly import DayOfWeek

logger = logging.getLogger("app.resources")


def create_resource(db: Session, tenant_id: int, payload: ResourceCreateRequest) -> Resource:
    resource = Resource(
        tenant_id=tenant_id,
        name=payload.name,
        kind=payload.kind.value,
        status=ResourceStatus.ACTIVE.value,
        sort_order=payload.sort_order,
    )
    db.add(resource)
    db.commit()
    db.refresh(resource)
    logger.info("resource_created resource_id=%s tenant_id=%s", resource.id, tenant_id)
    return resource


def get_tenant_resource(db: Session, tenant_id: int, resource_id: int) -> Resource:
    resource = db.scalar(select(Resource).where(Resource.id == resource_id, Resource.tenant_id == tenant_id))
    if not resource:
        raise NotFoundError("Resource not found")
    return resource


def list_resources(
    db: Session,
    tenant_id: int,
    include_inactive: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> list[Resource]:
    query = select(Resource).where(Resource.tenant_id == tenant_id)
    if not include_inactive:
        query = query.where(Resource.status == ResourceStatus.ACTIVE.value)
    return list(db.scalars(query.order_by(Resource.sort_order, Resource.id).limit(limit).offset(offset)).all())


def deactivate_resource(db: Session, tenant_id: int, resource_id: int) -> Resource:
    resource = get_tenant_resource(db, tenant_id, resource_id)
    resource.deactivate()
    db.commit()
    db.refresh(resource)
    logger.info("resource_deactivated resource_id=%s", resource.id)
    return resource


def get_weekly_availability(db: Session, tenant_id: int, resource_id: int) -> list[AvailabilityWindow]:
    resource = get_tenant_resource(db, tenant_id, resource_id)
    windows = db.scalars(select(AvailabilityWindow).where(AvailabilityWindow.resource_id == resource.id)).all()
    order = {day.value: index for index, day in enumerate(DayOfWeek)}
    return sorted(windows, key=lambda window: order[window.day_of_week])


def replace_weekly_availability(
    db: Session,
    tenant_id: int,
    resource_id: int,
    payload: WeeklyAvailabilityRequest,
) -> list[AvailabilityWindow]:
    """Swap the resource's whole weekly template; days left out become closed."""
    resource = get_tenant_resource(db, tenant_id, resource_id)
    db.execute(delete(AvailabilityWindow).where(AvailabilityWindow.resource_id == resource.id))
    db.add_all(
        [
            AvailabilityWindow(
                resource_id=resource.id,
                day_of_week=entry.day_of_week.value,
                start_time=entry.start_time,
                end_time=entry.end_time,
                is_available=entry.is_available,
            )
            for entry in payload.windows
        ]
    )
    db.commit()
    logger.info("availability_replaced resource_id=%s days=%s", resource.id, len(payload.windows))
    return get_weekly_availability(db, tenant_id, resource.id)


def create_blockout(db: Session, tenant_id: int, resource_id: int, payload: BlockoutCreateRequest) -> Blockout:
    resource = get_tenant_resource(db, tenant_id, resource_id)
    blockout = Blockout(
        resource_id=resource.id,
        start_at=payload.start_at,
        end_at=payload.end_at,
        description=payload.description,
    )
    db.add(blockout)
    db.commit()
    db.refresh(blockout)
    logger.info(
        "blockout_created blockout_id=%s resource_id=%s start_at=%s end_at=%s",
        blockout.id,
        resource.id,
        blockout.start_at.isoformat(),
        blockout.end_at.isoformat(),
    )
    return blockout


def list_blockouts(
    db: Session,
    tenant_id: int,
    resource_id: int,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
) -> list[Blockout]:
    for bound in (start_at, end_at):
        if bound is not None and bound.tzinfo is None:
            raise InvalidInputError("Blockout range bounds must include a timezone offset")
    resource = get_tenant_resource(db, tenant_id, resource_id)
    query = select(Blockout).where(Blockout.resource_id == resource.id)
    if start_at:
        query = query.where(Blockout.end_at > start_at)
    if end_at:
        query = query.where(Blockout.start_at < end_at)
    return list(db.scalars(query.order_by(Blockout.start_at, Blockout.id)).all())


def delete_blockout(db: Session, tenant_id: int, resource_id: int, blockout_id: int) -> None:
    resource = get_tenant_resource(db, tenant_id, resource_id)
    blockout = db.scalar(select(Blockout).where(Blockout.id == blockout_id, Blockout.resource_id == resource.id))
    if not blockout:
        raise NotFoundError("Blockout not found")
    db.delete(blockout)
    db.commit()
    logger.info("blockout_deleted blockout_id=%s resource_id=%s", blockout_id, resource.id)
