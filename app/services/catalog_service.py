import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidInputError, NotFoundError
from app.db.models import Resource, Service, ServiceStatus
from app.schemas.service import ServiceCreateRequest

logger = logging.getLogger("app.services")


def _tenant_resources(db: Session, tenant_id: int, resource_ids: list[int]) -> list[Resource]:
    unique_ids = sorted(set(resource_ids))
    if not unique_ids:
        return []
    resources = db.scalars(
        select(Resource).where(Resource.id.in_(unique_ids), Resource.tenant_id == tenant_id)
    ).all()
    if len(resources) != len(unique_ids):
        raise InvalidInputError("Every resource in the pool must belong to the tenant")
    return list(resources)


def create_service(db: Session, tenant_id: int, payload: ServiceCreateRequest) -> Service:
    service = Service(
        tenant_id=tenant_id,
        name=payload.name,
        description=payload.description,
        duration_minutes=payload.duration_minutes,
        slot_granularity_minutes=payload.slot_granularity_minutes,
        status=ServiceStatus.ACTIVE.value,
    )
    service.resources = _tenant_resources(db, tenant_id, payload.resource_ids)
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(
        "service_created service_id=%s tenant_id=%s duration_minutes=%s resources=%s",
        service.id,
        tenant_id,
        service.duration_minutes,
        len(service.resources),
    )
    return service


def get_service(db: Session, service_id: int, tenant_id: int | None = None) -> Service:
    query = select(Service).where(Service.id == service_id)
    if tenant_id is not None:
        query = query.where(Service.tenant_id == tenant_id)
    service = db.scalar(query)
    if not service:
        raise NotFoundError("Service not found")
    return service


def list_services(db: Session, tenant_id: int, limit: int = 20, offset: int = 0) -> list[Service]:
    return list(
        db.scalars(
            select(Service).where(Service.tenant_id == tenant_id).order_by(Service.id).limit(limit).offset(offset)
        ).all()
    )


def replace_service_resources(db: Session, tenant_id: int, service_id: int, resource_ids: list[int]) -> Service:
    """Pool changes apply to slot queries made after the commit."""
    service = get_service(db, service_id, tenant_id=tenant_id)
    service.resources = _tenant_resources(db, tenant_id, resource_ids)
    db.commit()
    db.refresh(service)
    logger.info("service_pool_replaced service_id=%s resources=%s", service.id, len(service.resources))
    return service
