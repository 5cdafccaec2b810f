"""Auth service."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from whitebox.core.config import settings
from whitebox.core.errors import NotFoundError, ValidationError
from whitebox.core.security import hash_password, verify_password
from whitebox.models.organization import Organization
from whitebox.models.user import User
from whitebox.services.access_control import Role

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_user(
    db: Session,
    email: str,
    password: str,
    role: Role = Role.REPORTER,
    full_name: str = "",
    organization_id: int | None = None,
    department_scoped: bool = False,
) -> User:
    """Create a user. Organisation members must belong to an existing organisation."""
    if get_user_by_email(db, email):
        raise ValidationError("Email already registered")
    if role is Role.ORGANISATION_MEMBER:
        if organization_id is None:
            raise ValidationError("Organisation members need an organisation")
        if not db.get(Organization, organization_id):
            raise NotFoundError(f"Organisation {organization_id} not found")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        full_name=full_name,
        role=role.value,
        organization_id=organization_id if role is not Role.REPORTER else None,
        department_scoped=department_scoped,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate user by email and password."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    return user


def ensure_bootstrap_admin(db: Session) -> User | None:
    """Create the configured platform administrator if it does not exist yet."""
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return None
    existing = get_user_by_email(db, settings.bootstrap_admin_email)
    if existing:
        return existing
    logger.info("Creating bootstrap administrator %s", settings.bootstrap_admin_email)
    return create_user(
        db,
        settings.bootstrap_admin_email,
        settings.bootstrap_admin_password,
        role=Role.ADMINISTRATOR,
        full_name="Administrator",
    )


def create_organization(db: Session, name: str) -> Organization:
    if not name.strip():
        raise ValidationError("Organisation name is required")
    org = Organization(name=name.strip())
    db.add(org)
    db.commit()
    db.refresh(org)
    return org
