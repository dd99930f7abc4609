from pydantic import BaseModel, EmailStr, Field, field_validator

from app.services.tenant_service import is_valid_timezone


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    tenant_name: str = Field(min_length=2, max_length=120)
    timezone: str = "UTC"
    requires_booking_confirmation: bool = False
    slot_granularity_minutes: int | None = Field(default=None, ge=5, le=240)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError("timezone must be a valid IANA timezone name")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
