"""Report schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class RiskCategoryIn(BaseModel):
    category_id: int
    sub_category_id: int | None = None


class ReportCreate(BaseModel):
    reported_org_id: int
    title: str = Field(max_length=255)
    description: str
    reporter_email: EmailStr | None = None
    is_anonymous: bool = False
    incident_date: str | None = None
    incident_location: str | None = None
    country: str | None = None
    event_country: str | None = None
    supplier_org_id: int | None = None
    worksite_id: int | None = None
    risk_categories: list[RiskCategoryIn] = Field(default_factory=list)

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ReportOut(BaseModel):
    id: int
    report_code: str
    reported_org_id: int
    reporter_user_id: int | None
    is_anonymous: bool
    title: str
    description: str
    incident_date: str | None
    incident_location: str | None
    country: str | None
    event_country: str | None
    supplier_org_id: int | None
    worksite_id: int | None
    status_code: str
    status_label: str
    filter_result_code: str | None = None
    filter_result_label: str | None = None
    is_spam: bool
    assigned_department_id: int | None
    created_at: datetime


class FilterDecisionRequest(BaseModel):
    result_code: str
    reasoning: str | None = None
    is_auto: bool = False
    needs_super_review: bool = False


class AllowedTransitionOut(BaseModel):
    to_status: str
    label: str
    requires_comment: bool
    requires_action: bool
