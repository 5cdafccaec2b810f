"""Department administration API."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from whitebox.core.deps import get_current_actor
from whitebox.core.errors import ValidationError
from whitebox.db.session import get_db
from whitebox.schemas.department import (
    DepartmentCreate,
    DepartmentMemberRequest,
    DepartmentMemberResponse,
    DepartmentResponse,
    DepartmentUpdate,
)
from whitebox.services.access_control import Actor
from whitebox.services.department_service import (
    add_department_member,
    create_department,
    list_departments,
    update_department,
)

router = APIRouter(prefix="/departments", tags=["departments"])


def _organization_for(actor: Actor, organization_id: int | None) -> int:
    """Members default to their own organisation; administrators must name one."""
    org_id = organization_id if organization_id is not None else actor.organization_id
    if org_id is None:
        raise ValidationError("organization_id is required")
    return org_id


@router.post("", response_model=DepartmentResponse, status_code=201)
def add_department(
    data: DepartmentCreate,
    organization_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return create_department(db, actor, _organization_for(actor, organization_id), data)


@router.get("", response_model=list[DepartmentResponse])
def read_departments(
    organization_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Departments of an organisation in routing order (priority ascending)."""
    return list_departments(db, actor, _organization_for(actor, organization_id))


@router.patch("/{department_id}", response_model=DepartmentResponse)
def edit_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return update_department(db, actor, department_id, data)


@router.post("/{department_id}/members", response_model=DepartmentMemberResponse, status_code=201)
def add_member(
    department_id: int,
    data: DepartmentMemberRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return add_department_member(db, actor, department_id, data.user_id)
