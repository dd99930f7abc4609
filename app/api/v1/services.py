from datetime import date

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.pagination import LimitParam, OffsetParam
from app.core.config import settings
from app.db.models import User
from app.db.session import get_db
from app.schemas.service import ServiceCreateRequest, ServiceResourcesRequest, ServiceResponse
from app.schemas.slot import SlotResponse
from app.services.catalog_service import create_service, get_service, list_services, replace_service_resources
from app.services.slot_service import get_slots

router = APIRouter(prefix="/services", tags=["services"])


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_tenant_service(
    payload: ServiceCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServiceResponse:
    service = create_service(db=db, tenant_id=current_user.tenant_id, payload=payload)
    return ServiceResponse.from_service(service)


@router.get("", response_model=list[ServiceResponse], status_code=status.HTTP_200_OK)
def list_tenant_services(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ServiceResponse]:
    services = list_services(db=db, tenant_id=current_user.tenant_id, limit=limit, offset=offset)
    return [ServiceResponse.from_service(service) for service in services]


@router.get("/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def get_public_service(service_id: int, db: Session = Depends(get_db)) -> ServiceResponse:
    return ServiceResponse.from_service(get_service(db=db, service_id=service_id))


@router.put("/{service_id}/resources", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def replace_pool(
    service_id: int,
    payload: ServiceResourcesRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServiceResponse:
    service = replace_service_resources(
        db=db,
        tenant_id=current_user.tenant_id,
        service_id=service_id,
        resource_ids=payload.resource_ids,
    )
    return ServiceResponse.from_service(service)


@router.get("/{service_id}/slots", response_model=list[SlotResponse], status_code=status.HTTP_200_OK)
def list_available_slots(
    service_id: int,
    response: Response,
    start_date: date = Query(...),
    end_date: date = Query(...),
    resource_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[SlotResponse]:
    slots = get_slots(
        db=db,
        service_id=service_id,
        start_date=start_date,
        end_date=end_date,
        resource_id=resource_id,
    )
    response.headers["Cache-Control"] = f"public, max-age={settings.slots_cache_max_age_seconds}"
    return [SlotResponse.model_validate(slot) for slot in slots]
