from datetime import datetime, time
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import UTCDateTime


class ResourceKind(str, Enum):
    PROFESSIONAL = "professional"
    PHYSICAL = "physical"


class ResourceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default=ResourceKind.PROFESSIONAL.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ResourceStatus.ACTIVE.value)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, server_default=func.now())

    tenant = relationship("Tenant", back_populates="resources")
    availability_windows = relationship(
        "AvailabilityWindow",
        back_populates="resource",
        cascade="all, delete-orphan",
    )
    blockouts = relationship("Blockout", back_populates="resource", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status == ResourceStatus.ACTIVE.value

    def deactivate(self) -> None:
        self.status = ResourceStatus.INACTIVE.value


class AvailabilityWindow(Base):
    __tablename__ = "availability_windows"
    __table_args__ = (
        UniqueConstraint("resource_id", "day_of_week", name="uq_availability_windows_resource_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    resource_id: Mapped[int] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    resource = relationship("Resource", back_populates="availability_windows")


class Blockout(Base):
    __tablename__ = "blockouts"
    __table_args__ = (CheckConstraint("start_at < end_at", name="ck_blockouts_interval"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    resource_id: Mapped[int] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, server_default=func.now())

    resource = relationship("Resource", back_populates="blockouts")
