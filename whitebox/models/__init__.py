"""SQLAlchemy models."""

from __future__ import annotations

from whitebox.models.action import ReportAction
from whitebox.models.catalog_revision import CatalogRevision
from whitebox.models.comment import ReportComment
from whitebox.models.department import Department, DepartmentMember
from whitebox.models.filter_decision import FilterDecision
from whitebox.models.organization import Organization
from whitebox.models.report import Report, ReportRiskCategory
from whitebox.models.status import FilterResult, ReportStatus, StatusTransition
from whitebox.models.status_history import StatusHistoryEntry
from whitebox.models.user import User

__all__ = [
    "CatalogRevision",
    "Department",
    "DepartmentMember",
    "FilterDecision",
    "FilterResult",
    "Organization",
    "Report",
    "ReportAction",
    "ReportComment",
    "ReportRiskCategory",
    "ReportStatus",
    "StatusHistoryEntry",
    "StatusTransition",
    "User",
]
