"""Department schemas.

Scope fields: omitted, null or an empty list means "any value"; otherwise the
report value must be one of the listed values.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DepartmentScopeFields(BaseModel):
    scope_risk_category_ids: list[int] | None = None
    scope_risk_subcategory_ids: list[int] | None = None
    scope_country_codes: list[str] | None = None
    scope_supplier_org_ids: list[int] | None = None
    scope_worksite_ids: list[int] | None = None


class DepartmentCreate(DepartmentScopeFields):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    priority: int = Field(default=100, ge=0)
    is_active: bool = True


class DepartmentUpdate(DepartmentScopeFields):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    priority: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class DepartmentResponse(DepartmentScopeFields):
    id: int
    organization_id: int
    name: str
    description: str | None
    priority: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DepartmentMemberRequest(BaseModel):
    user_id: int


class DepartmentMemberResponse(BaseModel):
    id: int
    department_id: int
    user_id: int

    model_config = {"from_attributes": True}


class DepartmentAssignRequest(BaseModel):
    department_id: int


class RouteResponse(BaseModel):
    report_id: int
    department: DepartmentResponse | None = None
