"""Role and scope checks on the workflow engines."""

import pytest
from sqlalchemy import func, select

from whitebox.core.errors import AuthorizationError
from whitebox.models import StatusHistoryEntry
from whitebox.schemas.department import DepartmentCreate
from whitebox.services.access_control import CAPABILITIES, Actor, Operation, Role, authorize
from whitebox.services.department_service import add_department_member, create_department
from whitebox.services.filter_service import apply_filter_decision
from whitebox.services.report_service import get_report, list_reports
from whitebox.services.status_catalog import get_catalog
from whitebox.services.transition_service import apply_transition


def _history_count(db, report_id):
    return db.execute(
        select(func.count()).select_from(StatusHistoryEntry).where(StatusHistoryEntry.report_id == report_id)
    ).scalar_one()


def test_capability_table():
    assert CAPABILITIES[Role.REPORTER] == frozenset({Operation.READ_REPORT, Operation.COMMENT})
    assert Operation.SET_STATUS in CAPABILITIES[Role.ORGANISATION_MEMBER]
    assert Operation.EDIT_CATALOG not in CAPABILITIES[Role.ORGANISATION_MEMBER]
    assert CAPABILITIES[Role.ADMINISTRATOR] == frozenset(Operation)


def test_reporter_cannot_drive_workflow(db, make_org, make_user, actor_for, make_report):
    org = make_org()
    reporter = actor_for(make_user(Role.REPORTER))
    report = make_report(org.id, actor=reporter)

    with pytest.raises(AuthorizationError):
        apply_filter_decision(db, report.id, "admitted", reporter)
    with pytest.raises(AuthorizationError):
        apply_transition(db, report.id, "waiting_admitted", reporter)

    db.refresh(report)
    assert get_catalog().status_by_id(report.status_id).code == "pre_evaluation"
    assert report.current_filter_result_id is None
    assert _history_count(db, report.id) == 0


def test_reporter_reads_only_own_reports(db, make_org, make_user, actor_for, make_report):
    org = make_org()
    alice = actor_for(make_user(Role.REPORTER))
    bob = actor_for(make_user(Role.REPORTER))
    mine = make_report(org.id, actor=alice)
    make_report(org.id, actor=bob)
    make_report(org.id)

    assert get_report(db, mine.id, alice).id == mine.id
    with pytest.raises(AuthorizationError):
        get_report(db, mine.id, bob)
    assert [r.id for r in list_reports(db, alice)] == [mine.id]


def test_member_of_other_organisation_is_denied(db, make_org, make_user, actor_for, make_report):
    org, other_org = make_org(), make_org()
    outsider = actor_for(make_user(Role.ORGANISATION_MEMBER, organization_id=other_org.id))
    report = make_report(org.id)

    with pytest.raises(AuthorizationError):
        apply_filter_decision(db, report.id, "spam", outsider)
    with pytest.raises(AuthorizationError):
        get_report(db, report.id, outsider)
    assert report.id not in [r.id for r in list_reports(db, outsider)]
    assert _history_count(db, report.id) == 0


def test_department_scoped_member(db, make_org, make_user, actor_for, make_report, admin_actor):
    org = make_org()
    lead = make_user(Role.ORGANISATION_MEMBER, organization_id=org.id)
    lead_actor = actor_for(lead)
    desk = create_department(
        db, lead_actor, org.id, DepartmentCreate(name="Worksite 7", priority=10, scope_worksite_ids=[7])
    )
    create_department(db, lead_actor, org.id, DepartmentCreate(name="Everything else", priority=50))

    scoped = make_user(Role.ORGANISATION_MEMBER, organization_id=org.id, department_scoped=True)
    add_department_member(db, admin_actor, desk.id, scoped.id)
    scoped_actor = actor_for(scoped)
    assert scoped_actor.department_ids == frozenset({desk.id})

    inside = make_report(org.id, worksite_id=7)
    outside = make_report(org.id, worksite_id=8)
    assert inside.assigned_department_id == desk.id

    apply_filter_decision(db, inside.id, "admitted", scoped_actor)
    with pytest.raises(AuthorizationError):
        apply_filter_decision(db, outside.id, "admitted", scoped_actor)
    assert [r.id for r in list_reports(db, scoped_actor)] == [inside.id]

    # unscoped colleagues see the whole organisation
    assert {inside.id, outside.id} <= {r.id for r in list_reports(db, lead_actor)}


def test_admin_can_act_anywhere(db, make_org, make_report, admin_actor):
    report = make_report(make_org().id)
    report = apply_filter_decision(db, report.id, "admitted", admin_actor)
    assert get_catalog().status_by_id(report.status_id).code == "waiting_admitted"


def test_authorize_organisation_scope():
    member = Actor(role=Role.ORGANISATION_MEMBER, user_id=1, organization_id=5)
    authorize(member, Operation.MANAGE_DEPARTMENTS, organization_id=5)
    with pytest.raises(AuthorizationError):
        authorize(member, Operation.MANAGE_DEPARTMENTS, organization_id=6)
    with pytest.raises(AuthorizationError):
        authorize(member, Operation.EDIT_CATALOG)
