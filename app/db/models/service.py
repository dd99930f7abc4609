from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Table, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import UTCDateTime

service_resources = Table(
    "service_resources",
    Base.metadata,
    Column("service_id", ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    Column("resource_id", ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True),
)


class ServiceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(nullable=False)
    slot_granularity_minutes: Mapped[int | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ServiceStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, server_default=func.now())

    tenant = relationship("Tenant", back_populates="services")
    resources = relationship("Resource", secondary=service_resources, order_by="Resource.id")

    @property
    def is_active(self) -> bool:
        return self.status == ServiceStatus.ACTIVE.value
