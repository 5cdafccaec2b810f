"""Department matching and routing tests."""

import pytest
from sqlalchemy import select

from whitebox.core.errors import AuthorizationError, ValidationError
from whitebox.models import Department
from whitebox.schemas.department import DepartmentCreate, DepartmentUpdate
from whitebox.services.access_control import Role
from whitebox.services.department_router import DepartmentScope, ReportAttributes, Scope, match_department
from whitebox.services.department_service import (
    assign_department,
    create_department,
    list_departments,
    route_report,
    update_department,
)


def _dept(department_id, priority, org_id=1, active=True, **scopes):
    return DepartmentScope(
        department_id=department_id,
        organization_id=org_id,
        name=f"Dept {department_id}",
        priority=priority,
        is_active=active,
        **scopes,
    )


def test_lowest_priority_wins():
    attrs = ReportAttributes(reported_org_id=1, country="de")
    departments = [_dept(2, 20), _dept(1, 10)]
    assert match_department(attrs, departments).department_id == 1


def test_deactivated_department_is_skipped():
    attrs = ReportAttributes(reported_org_id=1)
    departments = [_dept(1, 10, active=False), _dept(2, 20)]
    assert match_department(attrs, departments).department_id == 2


def test_equal_priority_prefers_lower_id():
    attrs = ReportAttributes(reported_org_id=1)
    assert match_department(attrs, [_dept(7, 10), _dept(3, 10)]).department_id == 3


def test_other_organisation_never_matches():
    attrs = ReportAttributes(reported_org_id=1)
    assert match_department(attrs, [_dept(1, 10, org_id=2)]) is None


def test_no_match_returns_none():
    attrs = ReportAttributes(reported_org_id=1, worksite_id=5)
    assert match_department(attrs, [_dept(1, 10, worksites=Scope.of([6]))]) is None


def test_empty_scope_column_is_wildcard():
    attrs = ReportAttributes(reported_org_id=1, supplier_org_id=9)
    assert Scope.from_column([]).is_wildcard
    assert Scope.from_column([]).admits([9])
    departments = [_dept(1, 10, supplier_orgs=Scope.from_column([])), _dept(2, 20)]
    assert match_department(attrs, departments).department_id == 1


def test_concrete_scope_needs_a_value_on_the_report():
    attrs = ReportAttributes(reported_org_id=1)
    assert match_department(attrs, [_dept(1, 10, worksites=Scope.of([1]))]) is None


def test_risk_axis_matches_any_category():
    attrs = ReportAttributes(reported_org_id=1, risk_category_ids=frozenset({3, 4}))
    departments = [_dept(1, 10, risk_categories=Scope.of([4, 8]))]
    assert match_department(attrs, departments).department_id == 1


def test_country_comparison_ignores_case():
    attrs = ReportAttributes(reported_org_id=1, country="bd")
    departments = [_dept(1, 10, countries=Scope.of(["BD"], str.casefold))]
    assert match_department(attrs, departments).department_id == 1


def test_scope_column_round_trip():
    assert Scope.from_column(None).is_wildcard
    assert Scope.from_column([3, 1]).to_column() == [1, 3]
    assert Scope.from_column([]).to_column() is None


@pytest.fixture
def org_staff(make_org, make_user, actor_for):
    org = make_org()
    member = make_user(Role.ORGANISATION_MEMBER, organization_id=org.id)
    return org, actor_for(member)


def test_report_is_routed_on_intake(db, org_staff, make_report):
    org, actor = org_staff
    general = create_department(db, actor, org.id, DepartmentCreate(name="General", priority=50))
    bangladesh = create_department(
        db,
        actor,
        org.id,
        DepartmentCreate(name="Bangladesh desk", priority=10, scope_country_codes=["BD"]),
    )

    report = make_report(org.id, country="Germany", event_country="bd")
    assert report.assigned_department_id == bangladesh.id

    other = make_report(org.id, country="DE")
    assert other.assigned_department_id == general.id


def test_department_with_empty_scope_lists_takes_every_report(db, org_staff, make_report):
    org, actor = org_staff
    catch_all = create_department(
        db,
        actor,
        org.id,
        DepartmentCreate(
            name="Catch-all",
            priority=10,
            scope_risk_category_ids=[],
            scope_risk_subcategory_ids=[],
            scope_country_codes=[],
            scope_supplier_org_ids=[],
            scope_worksite_ids=[],
        ),
    )
    report = make_report(org.id, country="DE", worksite_id=3, risk_categories=[{"category_id": 4}])
    assert report.assigned_department_id == catch_all.id


def test_unset_scope_is_stored_as_sql_null(db, org_staff):
    org, actor = org_staff
    dept = create_department(db, actor, org.id, DepartmentCreate(name="Unscoped"))
    found = db.execute(
        select(Department.id).where(
            Department.id == dept.id,
            Department.scope_worksite_ids.is_(None),
            Department.scope_country_codes.is_(None),
        )
    ).scalar_one_or_none()
    assert found == dept.id


def test_reroute_after_deactivation(db, org_staff, make_report):
    org, actor = org_staff
    first = create_department(db, actor, org.id, DepartmentCreate(name="First", priority=10))
    second = create_department(db, actor, org.id, DepartmentCreate(name="Second", priority=20))
    report = make_report(org.id)
    assert report.assigned_department_id == first.id

    update_department(db, actor, first.id, DepartmentUpdate(is_active=False))
    db.refresh(report)
    assert report.assigned_department_id == first.id

    assert route_report(db, report.id, actor).id == second.id
    db.refresh(report)
    assert report.assigned_department_id == second.id

    update_department(db, actor, second.id, DepartmentUpdate(is_active=False))
    assert route_report(db, report.id, actor) is None
    db.refresh(report)
    assert report.assigned_department_id is None


def test_list_departments_in_priority_order(db, org_staff):
    org, actor = org_staff
    create_department(db, actor, org.id, DepartmentCreate(name="Low", priority=90))
    create_department(db, actor, org.id, DepartmentCreate(name="High", priority=5))
    assert [d.name for d in list_departments(db, actor, org.id)] == ["High", "Low"]


def test_update_rejects_null_priority(db, org_staff):
    org, actor = org_staff
    dept = create_department(db, actor, org.id, DepartmentCreate(name="Ops"))
    with pytest.raises(ValidationError):
        update_department(db, actor, dept.id, DepartmentUpdate(priority=None))


def test_member_cannot_manage_other_organisation(db, org_staff, make_org):
    _, actor = org_staff
    other = make_org()
    with pytest.raises(AuthorizationError):
        create_department(db, actor, other.id, DepartmentCreate(name="Nope"))


def test_admin_assignment_override(db, org_staff, make_report, admin_actor, make_org):
    org, actor = org_staff
    create_department(db, actor, org.id, DepartmentCreate(name="Routed", priority=10))
    manual = create_department(
        db, actor, org.id, DepartmentCreate(name="Manual", priority=20, scope_worksite_ids=[404])
    )
    report = make_report(org.id)

    with pytest.raises(AuthorizationError):
        assign_department(db, report.id, manual.id, actor)

    assert assign_department(db, report.id, manual.id, admin_actor).id == manual.id
    db.refresh(report)
    assert report.assigned_department_id == manual.id

    foreign_org = make_org()
    foreign = create_department(db, admin_actor, foreign_org.id, DepartmentCreate(name="Elsewhere"))
    with pytest.raises(ValidationError):
        assign_department(db, report.id, foreign.id, admin_actor)
