"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from whitebox.core.security import read_token
from whitebox.db.session import get_db
from whitebox.models.user import User
from whitebox.services.access_control import Actor
from whitebox.services.auth_service import get_user_by_email
from whitebox.services.department_service import department_ids_for_user
from whitebox.services.status_catalog import refresh_catalog_if_stale

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_credentials(db: Session, credentials: HTTPAuthorizationCredentials) -> User:
    claims = read_token(credentials.credentials)
    if not claims:
        raise _unauthorized("Invalid or expired token")
    user = get_user_by_email(db, claims.email)
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("User is inactive")
    return user


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> User:
    """Require authenticated user. Raises 401 if not authenticated."""
    if not credentials:
        raise _unauthorized("Not authenticated")
    return _user_from_credentials(db, credentials)


def get_current_actor(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> Actor:
    """Workflow identity of the authenticated user, with department memberships."""
    refresh_catalog_if_stale(db)
    return Actor.from_user(current_user, department_ids_for_user(db, current_user.id))


def get_optional_actor(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Actor | None:
    """Actor when a bearer token is sent, None for anonymous callers."""
    refresh_catalog_if_stale(db)
    if not credentials:
        return None
    user = _user_from_credentials(db, credentials)
    return Actor.from_user(user, department_ids_for_user(db, user.id))
