"""Administrator API: accounts, organisations, transition table, dashboard."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from whitebox.api.catalog import rule_out
from whitebox.api.reports import report_out
from whitebox.core.deps import get_current_actor
from whitebox.db.session import get_db
from whitebox.schemas.admin import DashboardCounts, OrganizationCreate, OrganizationOut
from whitebox.schemas.auth import UserMe, UserProvisionRequest
from whitebox.schemas.report import ReportOut
from whitebox.schemas.status import TransitionRuleOut, TransitionRuleUpsert
from whitebox.services.access_control import Actor, Operation, Role, authorize
from whitebox.services.auth_service import create_organization, create_user
from whitebox.services.dashboard_service import dashboard_counts
from whitebox.services.report_service import list_reports
from whitebox.services.status_catalog import delete_transition_rule, get_catalog, upsert_transition_rule

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/organisations", response_model=OrganizationOut, status_code=201)
def add_organization(
    data: OrganizationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    authorize(actor, Operation.PROVISION_ACCOUNTS)
    return create_organization(db, data.name)


@router.post("/users", response_model=UserMe, status_code=201)
def provision_user(
    data: UserProvisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Create a staff or administrator account."""
    authorize(actor, Operation.PROVISION_ACCOUNTS)
    return create_user(
        db,
        data.email,
        data.password,
        role=Role(data.role),
        full_name=data.full_name,
        organization_id=data.organization_id,
        department_scoped=data.department_scoped,
    )


@router.put("/transitions", response_model=TransitionRuleOut)
def put_transition(
    data: TransitionRuleUpsert,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Create or update a transition rule and reload the catalog."""
    authorize(actor, Operation.EDIT_CATALOG)
    rule = upsert_transition_rule(
        db,
        data.from_status,
        data.to_status,
        requires_comment=data.requires_comment,
        requires_action=data.requires_action,
    )
    return rule_out(get_catalog(), rule)


@router.delete("/transitions/{from_status}/{to_status}", status_code=204)
def remove_transition(
    from_status: str,
    to_status: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    authorize(actor, Operation.EDIT_CATALOG)
    delete_transition_rule(db, from_status, to_status)


@router.get("/dashboard", response_model=DashboardCounts)
def dashboard(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return dashboard_counts(db, actor)


@router.get("/archive", response_model=list[ReportOut])
def archive(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Archived reports across all organisations."""
    authorize(actor, Operation.VIEW_DASHBOARD)
    return [report_out(r) for r in list_reports(db, actor, status_code="archived", limit=limit)]
