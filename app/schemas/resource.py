from datetime import datetime, time

from pydantic import BaseModel, Field, field_validator, model_validator

from app.db.models import ResourceKind
from app.scheduling.weekly import DayOfWeek


class ResourceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    kind: ResourceKind = ResourceKind.PROFESSIONAL
    sort_order: int = Field(default=0, ge=0)


class ResourceResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    kind: ResourceKind
    status: str
    sort_order: int
    created_at: datetime

    model_config = {"from_attributes": True}


class AvailabilityWindowEntry(BaseModel):
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool = True

    @model_validator(mode="after")
    def validate_hours(self) -> "AvailabilityWindowEntry":
        if self.start_time.tzinfo is not None or self.end_time.tzinfo is not None:
            raise ValueError("window times are local to the tenant timezone and must not carry an offset")
        if self.is_available and self.end_time <= self.start_time:
            raise ValueError("end_time must be greater than start_time for an available day")
        return self


class WeeklyAvailabilityRequest(BaseModel):
    windows: list[AvailabilityWindowEntry] = Field(max_length=7)

    @field_validator("windows")
    @classmethod
    def validate_unique_days(cls, windows: list[AvailabilityWindowEntry]) -> list[AvailabilityWindowEntry]:
        days = [window.day_of_week for window in windows]
        if len(days) != len(set(days)):
            raise ValueError("each day_of_week may appear at most once")
        return windows


class AvailabilityWindowResponse(BaseModel):
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool

    model_config = {"from_attributes": True}


class BlockoutCreateRequest(BaseModel):
    start_at: datetime
    end_at: datetime
    description: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_interval(self) -> "BlockoutCreateRequest":
        if self.start_at.tzinfo is None or self.end_at.tzinfo is None:
            raise ValueError("start_at and end_at must include a timezone offset")
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be greater than start_at")
        return self


class BlockoutResponse(BaseModel):
    id: int
    resource_id: int
    start_at: datetime
    end_at: datetime
    description: str | None

    model_config = {"from_attributes": True}
