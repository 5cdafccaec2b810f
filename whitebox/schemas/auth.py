"""Auth and user provisioning schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, model_validator


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    """Self-service sign-up. Always creates a reporter."""

    email: EmailStr
    password: str
    full_name: str = ""


class UserProvisionRequest(BaseModel):
    """Administrator-created staff account."""

    email: EmailStr
    password: str
    full_name: str = ""
    role: Literal["reporter", "organisation_member", "administrator"]
    organization_id: int | None = None
    department_scoped: bool = False

    @model_validator(mode="after")
    def member_needs_organisation(self) -> "UserProvisionRequest":
        if self.role == "organisation_member" and self.organization_id is None:
            raise ValueError("organisation members must name an organization_id")
        return self


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserMe(BaseModel):
    id: int
    email: str
    full_name: str
    role: str
    organization_id: int | None = None
    department_scoped: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
