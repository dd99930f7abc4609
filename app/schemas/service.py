from datetime import datetime

from pydantic import BaseModel, Field

from app.db.models import Service


class ServiceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    duration_minutes: int = Field(ge=5, le=480)
    slot_granularity_minutes: int | None = Field(default=None, ge=5, le=240)
    resource_ids: list[int] = Field(default_factory=list)


class ServiceResourcesRequest(BaseModel):
    resource_ids: list[int]


class ServiceResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    description: str | None
    duration_minutes: int
    slot_granularity_minutes: int | None
    status: str
    resource_ids: list[int]
    created_at: datetime

    @classmethod
    def from_service(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            tenant_id=service.tenant_id,
            name=service.name,
            description=service.description,
            duration_minutes=service.duration_minutes,
            slot_granularity_minutes=service.slot_granularity_minutes,
            status=service.status,
            resource_ids=[resource.id for resource in service.resources],
            created_at=service.created_at,
        )
