from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.db.models import BookingStatus


class CustomerPayload(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=40)


class BookingCreateRequest(BaseModel):
    service_id: int
    resource_id: int | None = None
    start_at: datetime
    customer: CustomerPayload

    @field_validator("start_at")
    @classmethod
    def validate_start_at(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start_at must include a timezone offset")
        return value


class BookingCreatedResponse(BaseModel):
    booking_id: int
    status: BookingStatus
    resource_id: int
    start_at: datetime
    end_at: datetime


class BookingStatusUpdateRequest(BaseModel):
    status: BookingStatus


class BookingConfirmRequest(BaseModel):
    token: str = Field(min_length=1, max_length=64)


class BookingResponse(BaseModel):
    id: int
    tenant_id: int
    service_id: int
    resource_id: int
    customer_name: str
    customer_email: str
    customer_phone: str | None
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    created_at: datetime
    cancelled_at: datetime | None

    model_config = {"from_attributes": True}
