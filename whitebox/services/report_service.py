"""Report intake and scoped reads."""

from __future__ import annotations

import logging
import time
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from whitebox.core.config import settings
from whitebox.core.errors import ConflictError, NotFoundError, ValidationError
from whitebox.models.organization import Organization
from whitebox.models.report import Report, ReportRiskCategory
from whitebox.schemas.report import ReportCreate
from whitebox.services.access_control import Actor, Operation, Role, authorize, scope_report_query
from whitebox.services.department_service import find_department_for
from whitebox.services.status_catalog import get_catalog

logger = logging.getLogger(__name__)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_report_code() -> str:
    """Human-readable code, e.g. WB-M3K2ZQ1A-3F9C0B."""
    millis = int(time.time() * 1000)
    return f"{settings.report_code_prefix}-{_base36(millis)}-{uuid.uuid4().hex[:6].upper()}"


def _unused_report_code(db: Session) -> str:
    for _ in range(settings.report_code_attempts):
        code = generate_report_code()
        taken = db.execute(select(Report.id).where(Report.report_code == code)).scalar_one_or_none()
        if taken is None:
            return code
    raise ConflictError("Could not allocate a unique report code")


def create_report(db: Session, data: ReportCreate, actor: Actor | None = None) -> Report:
    """File a new report in ``pre_evaluation`` and route it to a department.

    ``actor`` is None for anonymous intake.
    """
    if not db.get(Organization, data.reported_org_id):
        raise NotFoundError(f"Organisation {data.reported_org_id} not found")
    if data.supplier_org_id is not None and not db.get(Organization, data.supplier_org_id):
        raise ValidationError(f"Supplier organisation {data.supplier_org_id} not found")

    catalog = get_catalog()
    reporter_id = actor.user_id if actor is not None and actor.role is Role.REPORTER else None
    report = Report(
        report_code=_unused_report_code(db),
        reported_org_id=data.reported_org_id,
        reporter_user_id=reporter_id,
        reporter_email=None if data.is_anonymous else data.reporter_email,
        is_anonymous=data.is_anonymous,
        title=data.title,
        description=data.description,
        incident_date=data.incident_date,
        incident_location=data.incident_location,
        country=data.country,
        event_country=data.event_country,
        supplier_org_id=data.supplier_org_id,
        worksite_id=data.worksite_id,
        status_id=catalog.initial.status_id,
        is_spam=False,
    )
    db.add(report)
    db.flush()

    for risk in data.risk_categories:
        db.add(
            ReportRiskCategory(
                report_id=report.id,
                category_id=risk.category_id,
                sub_category_id=risk.sub_category_id,
            )
        )
    db.flush()

    matched = find_department_for(db, report)
    report.assigned_department_id = matched.department_id if matched else None
    db.commit()
    db.refresh(report)
    logger.info(
        "Report %s (%s) filed against organisation %s, department %s",
        report.id,
        report.report_code,
        report.reported_org_id,
        report.assigned_department_id,
    )
    return report


def get_report(db: Session, report_id: int, actor: Actor) -> Report:
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    authorize(actor, Operation.READ_REPORT, report)
    return report


def list_reports(
    db: Session,
    actor: Actor,
    status_code: str | None = None,
    spam: bool | None = None,
    limit: int = 50,
) -> list[Report]:
    """Reports visible to ``actor``, newest first."""
    authorize(actor, Operation.READ_REPORT)
    stmt = scope_report_query(select(Report), actor)
    if status_code:
        stmt = stmt.where(Report.status_id == get_catalog().status_by_code(status_code).status_id)
    if spam is not None:
        stmt = stmt.where(Report.is_spam.is_(spam))
    stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())
