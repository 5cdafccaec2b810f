"""Admin dashboard schemas."""

from pydantic import BaseModel


class DashboardCounts(BaseModel):
    total_reports: int
    spam_reports: int
    archived_reports: int
    waiting_filter: int
    investigating: int
    remediation: int


class OrganizationCreate(BaseModel):
    name: str


class OrganizationOut(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
