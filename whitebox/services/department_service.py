"""Department administration and report routing."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whitebox.core.errors import NotFoundError, ValidationError
from whitebox.models.department import Department, DepartmentMember
from whitebox.models.organization import Organization
from whitebox.models.report import Report, ReportRiskCategory
from whitebox.models.user import User
from whitebox.schemas.department import DepartmentCreate, DepartmentUpdate
from whitebox.services.access_control import Actor, Operation, authorize
from whitebox.services.department_router import DepartmentScope, ReportAttributes, match_department

logger = logging.getLogger(__name__)

SCOPE_FIELDS = (
    "scope_risk_category_ids",
    "scope_risk_subcategory_ids",
    "scope_country_codes",
    "scope_supplier_org_ids",
    "scope_worksite_ids",
)


def _get_department(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if not department:
        raise NotFoundError(f"Department {department_id} not found")
    return department


def create_department(db: Session, actor: Actor, organization_id: int, data: DepartmentCreate) -> Department:
    authorize(actor, Operation.MANAGE_DEPARTMENTS, organization_id=organization_id)
    if not db.get(Organization, organization_id):
        raise NotFoundError(f"Organisation {organization_id} not found")
    department = Department(
        organization_id=organization_id,
        name=data.name,
        description=data.description,
        priority=data.priority,
        is_active=data.is_active,
    )
    for name in SCOPE_FIELDS:
        setattr(department, name, getattr(data, name))
    db.add(department)
    db.commit()
    db.refresh(department)
    logger.info("Department %s created in organisation %s", department.id, organization_id)
    return department


def update_department(db: Session, actor: Actor, department_id: int, data: DepartmentUpdate) -> Department:
    """Apply the fields present in ``data``. Existing assignments are not re-routed."""
    department = _get_department(db, department_id)
    authorize(actor, Operation.MANAGE_DEPARTMENTS, organization_id=department.organization_id)
    for name, value in data.model_dump(exclude_unset=True).items():
        if name in ("name", "priority", "is_active") and value is None:
            raise ValidationError(f"{name} cannot be null")
        setattr(department, name, value)
    db.commit()
    db.refresh(department)
    return department


def list_departments(db: Session, actor: Actor, organization_id: int) -> list[Department]:
    authorize(actor, Operation.MANAGE_DEPARTMENTS, organization_id=organization_id)
    result = db.execute(
        select(Department)
        .where(Department.organization_id == organization_id)
        .order_by(Department.priority.asc(), Department.id.asc())
    )
    return list(result.scalars().all())


def add_department_member(db: Session, actor: Actor, department_id: int, user_id: int) -> DepartmentMember:
    department = _get_department(db, department_id)
    authorize(actor, Operation.MANAGE_DEPARTMENTS, organization_id=department.organization_id)
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    if user.organization_id != department.organization_id:
        raise ValidationError("User does not belong to the department's organisation")

    member = DepartmentMember(department_id=department.id, user_id=user.id)
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("User is already a member of this department")
    db.refresh(member)
    return member


def department_ids_for_user(db: Session, user_id: int) -> set[int]:
    result = db.execute(select(DepartmentMember.department_id).where(DepartmentMember.user_id == user_id))
    return set(result.scalars().all())


def find_department_for(db: Session, report: Report) -> DepartmentScope | None:
    """Match a report against its organisation's departments."""
    risks = db.execute(
        select(ReportRiskCategory).where(ReportRiskCategory.report_id == report.id)
    ).scalars()
    departments = db.execute(
        select(Department).where(
            Department.organization_id == report.reported_org_id,
            Department.is_active.is_(True),
        )
    ).scalars()
    return match_department(
        ReportAttributes.from_report(report, risks),
        [DepartmentScope.from_model(d) for d in departments],
    )


def route_report(db: Session, report_id: int, actor: Actor) -> Department | None:
    """Re-run matching and store the result. No match clears the assignment."""
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    authorize(actor, Operation.ROUTE_REPORT, report)

    matched = find_department_for(db, report)
    report.assigned_department_id = matched.department_id if matched else None
    db.commit()
    logger.info(
        "Report %s routed to department %s",
        report.id,
        matched.department_id if matched else None,
    )
    return db.get(Department, matched.department_id) if matched else None


def assign_department(db: Session, report_id: int, department_id: int, actor: Actor) -> Department:
    """Assign a department by hand, bypassing scope matching."""
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError(f"Report {report_id} not found")
    authorize(actor, Operation.ASSIGN_DEPARTMENT, report)
    department = _get_department(db, department_id)
    if department.organization_id != report.reported_org_id:
        raise ValidationError("Department belongs to another organisation")
    if not department.is_active:
        raise ValidationError("Department is inactive")

    report.assigned_department_id = department.id
    db.commit()
    logger.info("Report %s assigned to department %s by user=%s", report.id, department.id, actor.user_id)
    return department
