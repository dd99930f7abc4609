from app.db.models.booking import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, Booking, BookingStatus
from app.db.models.resource import AvailabilityWindow, Blockout, Resource, ResourceKind, ResourceStatus
from app.db.models.service import Service, ServiceStatus, service_resources
from app.db.models.tenant import Tenant
from app.db.models.user import User

__all__ = [
    "Tenant",
    "User",
    "Resource",
    "ResourceKind",
    "ResourceStatus",
    "AvailabilityWindow",
    "Blockout",
    "Service",
    "ServiceStatus",
    "service_resources",
    "Booking",
    "BookingStatus",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
]
