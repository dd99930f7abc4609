from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class StaffIdentity:
    user_id: int
    tenant_id: int


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: str, tenant_id: int, extra_claims: dict[str, Any] | None = None) -> str:
    """Issue a staff token; ``tenant_id`` scopes every staff operation."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = dict(extra_claims or {})
    claims.update({"sub": subject, "tenant_id": tenant_id, "exp": expire})
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def read_staff_identity(token: str) -> StaffIdentity:
    payload = decode_access_token(token)
    try:
        return StaffIdentity(user_id=int(payload["sub"]), tenant_id=int(payload["tenant_id"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Token is missing staff claims") from exc
