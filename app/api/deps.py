from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security import read_staff_identity
from app.db.models import User
from app.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Staff account behind the bearer token, still active and still in the token's tenant."""
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        identity = read_staff_identity(token)
    except ValueError:
        raise unauthorized_exc from None

    user = db.scalar(select(User).where(User.id == identity.user_id, User.tenant_id == identity.tenant_id))
    if not user or not user.is_active:
        raise unauthorized_exc
    return user
