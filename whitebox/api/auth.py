"""Auth endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from whitebox.core.deps import get_current_user
from whitebox.core.security import issue_token
from whitebox.db.session import get_db
from whitebox.models.user import User
from whitebox.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserMe
from whitebox.services.access_control import Role
from whitebox.services.auth_service import authenticate_user, create_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserMe)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Register a reporter account. Staff accounts are provisioned by administrators."""
    return create_user(db, data.email, data.password, role=Role.REPORTER, full_name=data.full_name)


@router.post("/login", response_model=TokenResponse)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """Login and return access token."""
    user = authenticate_user(db, data.email, data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(access_token=issue_token(user.email, user.role))


@router.get("/me", response_model=UserMe)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
