import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings
from app.db.models import Tenant

logger = logging.getLogger("app.tenants")


def is_valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def tenant_timezone(tenant: Tenant) -> ZoneInfo:
    try:
        return ZoneInfo(tenant.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.error(
            "invalid_tenant_timezone tenant_id=%s timezone=%s fallback=%s",
            tenant.id,
            tenant.timezone,
            settings.default_timezone,
        )
        return ZoneInfo(settings.default_timezone)
