from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.pagination import LimitParam, OffsetParam
from app.db.models import User
from app.db.session import get_db
from app.schemas.resource import (
    AvailabilityWindowResponse,
    BlockoutCreateRequest,
    BlockoutResponse,
    ResourceCreateRequest,
    ResourceResponse,
    WeeklyAvailabilityRequest,
)
from app.services.resource_service import (
    create_blockout,
    create_resource,
    deactivate_resource,
    delete_blockout,
    get_tenant_resource,
    get_weekly_availability,
    list_blockouts,
    list_resources,
    replace_weekly_availability,
)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
def create_tenant_resource(
    payload: ResourceCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ResourceResponse:
    resource = create_resource(db=db, tenant_id=current_user.tenant_id, payload=payload)
    return ResourceResponse.model_validate(resource)


@router.get("", response_model=list[ResourceResponse], status_code=status.HTTP_200_OK)
def list_tenant_resources(
    include_inactive: bool = Query(default=False),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ResourceResponse]:
    resources = list_resources(
        db=db,
        tenant_id=current_user.tenant_id,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )
    return [ResourceResponse.model_validate(resource) for resource in resources]


@router.get("/{resource_id}", response_model=ResourceResponse, status_code=status.HTTP_200_OK)
def get_resource(
    resource_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ResourceResponse:
    resource = get_tenant_resource(db=db, tenant_id=current_user.tenant_id, resource_id=resource_id)
    return ResourceResponse.model_validate(resource)


@router.patch("/{resource_id}/deactivate", response_model=ResourceResponse, status_code=status.HTTP_200_OK)
def deactivate(
    resource_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ResourceResponse:
    resource = deactivate_resource(db=db, tenant_id=current_user.tenant_id, resource_id=resource_id)
    return ResourceResponse.model_validate(resource)


@router.put(
    "/{resource_id}/availability",
    response_model=list[AvailabilityWindowResponse],
    status_code=status.HTTP_200_OK,
)
def put_weekly_availability(
    resource_id: int,
    payload: WeeklyAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AvailabilityWindowResponse]:
    windows = replace_weekly_availability(
        db=db,
        tenant_id=current_user.tenant_id,
        resource_id=resource_id,
        payload=payload,
    )
    return [AvailabilityWindowResponse.model_validate(window) for window in windows]


@router.get(
    "/{resource_id}/availability",
    response_model=list[AvailabilityWindowResponse],
    status_code=status.HTTP_200_OK,
)
def read_weekly_availability(
    resource_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AvailabilityWindowResponse]:
    windows = get_weekly_availability(db=db, tenant_id=current_user.tenant_id, resource_id=resource_id)
    return [AvailabilityWindowResponse.model_validate(window) for window in windows]


@router.post(
    "/{resource_id}/blockouts",
    response_model=BlockoutResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_blockout(
    resource_id: int,
    payload: BlockoutCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BlockoutResponse:
    blockout = create_blockout(db=db, tenant_id=current_user.tenant_id, resource_id=resource_id, payload=payload)
    return BlockoutResponse.model_validate(blockout)


@router.get(
    "/{resource_id}/blockouts",
    response_model=list[BlockoutResponse],
    status_code=status.HTTP_200_OK,
)
def get_blockouts(
    resource_id: int,
    start_at: datetime | None = Query(default=None),
    end_at: datetime | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BlockoutResponse]:
    blockouts = list_blockouts(
        db=db,
        tenant_id=current_user.tenant_id,
        resource_id=resource_id,
        start_at=start_at,
        end_at=end_at,
    )
    return [BlockoutResponse.model_validate(blockout) for blockout in blockouts]


@router.delete("/{resource_id}/blockouts/{blockout_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_blockout(
    resource_id: int,
    blockout_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    delete_blockout(db=db, tenant_id=current_user.tenant_id, resource_id=resource_id, blockout_id=blockout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
