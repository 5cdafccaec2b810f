"""Report intake and triage workflow API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from whitebox.core.deps import get_current_actor, get_optional_actor
from whitebox.db.session import get_db
from whitebox.models.report import Report
from whitebox.models.status_history import StatusHistoryEntry
from whitebox.schemas.action import ActionCreate, ActionOut
from whitebox.schemas.comment import CommentCreate, CommentOut
from whitebox.schemas.department import DepartmentAssignRequest, DepartmentResponse, RouteResponse
from whitebox.schemas.report import AllowedTransitionOut, FilterDecisionRequest, ReportCreate, ReportOut
from whitebox.schemas.status import StatusChangeRequest, StatusHistoryOut
from whitebox.services.access_control import Actor
from whitebox.services.action_service import create_action, list_actions
from whitebox.services.comment_service import add_comment, list_comments
from whitebox.services.department_service import assign_department, route_report
from whitebox.services.filter_service import apply_filter_decision
from whitebox.services.report_service import create_report, get_report, list_reports
from whitebox.services.status_catalog import get_catalog
from whitebox.services.transition_service import allowed_transitions, apply_transition, list_status_history

router = APIRouter(prefix="/reports", tags=["reports"])


def report_out(report: Report) -> ReportOut:
    """Resolve status and filter result ids to codes and labels."""
    catalog = get_catalog()
    status = catalog.status_by_id(report.status_id)
    filter_result = catalog.filter_result_by_id(report.current_filter_result_id)
    return ReportOut(
        id=report.id,
        report_code=report.report_code,
        reported_org_id=report.reported_org_id,
        reporter_user_id=report.reporter_user_id,
        is_anonymous=report.is_anonymous,
        title=report.title,
        description=report.description,
        incident_date=report.incident_date,
        incident_location=report.incident_location,
        country=report.country,
        event_country=report.event_country,
        supplier_org_id=report.supplier_org_id,
        worksite_id=report.worksite_id,
        status_code=status.code,
        status_label=status.label,
        filter_result_code=filter_result.code if filter_result else None,
        filter_result_label=filter_result.label if filter_result else None,
        is_spam=report.is_spam,
        assigned_department_id=report.assigned_department_id,
        created_at=report.created_at,
    )


def _history_out(entry: StatusHistoryEntry) -> StatusHistoryOut:
    status = get_catalog().status_by_id(entry.status_id)
    return StatusHistoryOut(
        id=entry.id,
        report_id=entry.report_id,
        status_code=status.code,
        status_label=status.label,
        comment_text=entry.comment_text,
        changed_by_user_id=entry.changed_by_user_id,
        changed_at=entry.changed_at,
    )


@router.post("", response_model=ReportOut, status_code=201)
def file_report(
    data: ReportCreate,
    db: Session = Depends(get_db),
    actor: Actor | None = Depends(get_optional_actor),
):
    """File a report. Anonymous callers are allowed."""
    return report_out(create_report(db, data, actor))


@router.get("", response_model=list[ReportOut])
def list_visible_reports(
    status_code: str | None = None,
    spam: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Reports the caller may see, newest first."""
    return [report_out(r) for r in list_reports(db, actor, status_code, spam, limit)]


@router.get("/{report_id}", response_model=ReportOut)
def read_report(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return report_out(get_report(db, report_id, actor))


@router.post("/{report_id}/status", response_model=ReportOut)
def set_report_status(
    report_id: int,
    data: StatusChangeRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Move a report along the transition table. The comment is stored on the new history row."""
    report = apply_transition(
        db,
        report_id,
        data.status_code,
        actor,
        comment=data.comment,
        expected_status_code=data.expected_status_code,
    )
    return report_out(report)


@router.post("/{report_id}/filter-decision", response_model=ReportOut)
def apply_report_filter_decision(
    report_id: int,
    data: FilterDecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    report = apply_filter_decision(
        db,
        report_id,
        data.result_code,
        actor,
        reasoning=data.reasoning,
        is_auto=data.is_auto,
        needs_super_review=data.needs_super_review,
    )
    return report_out(report)


@router.get("/{report_id}/status-history", response_model=list[StatusHistoryOut])
def list_report_status_history(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Status history, most recent first."""
    return [_history_out(e) for e in list_status_history(db, report_id, actor)]


@router.get("/{report_id}/allowed-transitions", response_model=list[AllowedTransitionOut])
def list_allowed_transitions(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return [
        AllowedTransitionOut(
            to_status=status.code,
            label=status.label,
            requires_comment=rule.requires_comment,
            requires_action=rule.requires_action,
        )
        for rule, status in allowed_transitions(db, report_id, actor)
    ]


@router.post("/{report_id}/route", response_model=RouteResponse)
def match_report_department(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Re-run department matching for a report."""
    department = route_report(db, report_id, actor)
    return RouteResponse(
        report_id=report_id,
        department=DepartmentResponse.model_validate(department) if department else None,
    )


@router.put("/{report_id}/department", response_model=DepartmentResponse)
def assign_report_department(
    report_id: int,
    data: DepartmentAssignRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Administrator override of the routed department."""
    return assign_department(db, report_id, data.department_id, actor)


@router.post("/{report_id}/actions", response_model=ActionOut, status_code=201)
def add_action(
    report_id: int,
    data: ActionCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return create_action(
        db,
        report_id,
        actor,
        data.description,
        due_date=data.due_date,
        status_code=data.status_code,
    )


@router.get("/{report_id}/actions", response_model=list[ActionOut])
def read_actions(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return list_actions(db, report_id, actor)


@router.post("/{report_id}/comments", response_model=CommentOut, status_code=201)
def post_comment(
    report_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Add to the report thread. Set ``is_note`` for staff-only notes."""
    return add_comment(db, report_id, actor, data.comment_text, is_note=data.is_note)


@router.get("/{report_id}/comments", response_model=list[CommentOut])
def read_comments(
    report_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return list_comments(db, report_id, actor)
