"""Status transition engine tests."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from whitebox.core.errors import InvalidTransition, MissingAction, MissingComment, NotFoundError
from whitebox.models import StatusHistoryEntry
from whitebox.services.access_control import Role
from whitebox.services.action_service import create_action
from whitebox.services.filter_service import apply_filter_decision
from whitebox.services.status_catalog import get_catalog
from whitebox.services.transition_service import allowed_transitions, apply_transition, list_status_history


@pytest.fixture
def staff(make_org, make_user, actor_for):
    org = make_org()
    member = make_user(Role.ORGANISATION_MEMBER, organization_id=org.id)
    return org, actor_for(member)


def _history_count(db, report_id):
    return db.execute(
        select(func.count()).select_from(StatusHistoryEntry).where(StatusHistoryEntry.report_id == report_id)
    ).scalar_one()


def _admitted_report(db, make_report, org, actor):
    report = make_report(org.id)
    apply_filter_decision(db, report.id, "admitted", actor)
    return report


def test_new_report_starts_in_pre_evaluation_without_history(db, staff, make_report):
    org, _ = staff
    report = make_report(org.id)
    assert get_catalog().status_by_id(report.status_id).code == "pre_evaluation"
    assert _history_count(db, report.id) == 0


def test_unlisted_transition_is_rejected(db, staff, make_report):
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)
    before = _history_count(db, report.id)

    with pytest.raises(InvalidTransition):
        apply_transition(db, report.id, "remediation", actor)

    db.refresh(report)
    assert get_catalog().status_by_id(report.status_id).code == "waiting_admitted"
    assert _history_count(db, report.id) == before


def test_every_absent_pair_is_invalid(db, staff, make_report):
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)
    catalog = get_catalog()
    current = catalog.status_by_code("waiting_admitted")
    allowed = {r.to_status_id for r in catalog.rules_from(current.status_id)}
    for status in catalog.statuses:
        if status.status_id in allowed:
            continue
        with pytest.raises(InvalidTransition):
            apply_transition(db, report.id, status.code, actor)
    assert _history_count(db, report.id) == 1


def test_unknown_target_status(db, staff, make_report):
    org, actor = staff
    report = make_report(org.id)
    with pytest.raises(NotFoundError):
        apply_transition(db, report.id, "closed", actor)


def test_archiving_requires_comment(db, staff, make_report):
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)

    with pytest.raises(MissingComment):
        apply_transition(db, report.id, "archived", actor)
    with pytest.raises(MissingComment):
        apply_transition(db, report.id, "archived", actor, comment="   ")

    report = apply_transition(db, report.id, "archived", actor, comment="Duplicate of an earlier report")
    assert get_catalog().status_by_id(report.status_id).code == "archived"

    latest = list_status_history(db, report.id, actor)[0]
    assert latest.comment_text == "Duplicate of an earlier report"
    assert latest.changed_by_user_id == actor.user_id


def test_archived_is_terminal(db, staff, make_report):
    org, actor = staff
    report = make_report(org.id)
    apply_filter_decision(db, report.id, "unfounded", actor)
    for status in get_catalog().statuses:
        with pytest.raises(InvalidTransition):
            apply_transition(db, report.id, status.code, actor, comment="reopen")


def test_remediation_requires_an_action(db, staff, make_report):
    org, actor = staff
    report = make_report(org.id)
    apply_filter_decision(db, report.id, "admitted", actor)
    apply_transition(db, report.id, "open_in_progress", actor)
    apply_transition(db, report.id, "investigation", actor)
    assert _history_count(db, report.id) == 3

    with pytest.raises(MissingAction):
        apply_transition(db, report.id, "remediation", actor)
    assert _history_count(db, report.id) == 3

    create_action(db, report.id, actor, "Back-pay overtime for affected workers")
    report = apply_transition(db, report.id, "remediation", actor)
    assert get_catalog().status_by_id(report.status_id).code == "remediation"
    assert _history_count(db, report.id) == 4


def test_history_is_newest_first(db, staff, make_report):
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)
    apply_transition(db, report.id, "open_in_progress", actor)

    codes = [get_catalog().status_by_id(e.status_id).code for e in list_status_history(db, report.id, actor)]
    assert codes == ["open_in_progress", "waiting_admitted"]


def test_allowed_transitions_follow_current_status(db, staff, make_report):
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)
    targets = [(status.code, rule.requires_comment) for rule, status in allowed_transitions(db, report.id, actor)]
    assert targets == [("open_in_progress", False), ("archived", True)]


def test_history_order_ignores_commit_timestamps(db, staff, make_report):
    """A write that waited on the row lock can carry an older timestamp."""
    org, actor = staff
    report = _admitted_report(db, make_report, org, actor)
    apply_transition(db, report.id, "open_in_progress", actor)

    first, latest = db.execute(
        select(StatusHistoryEntry).where(StatusHistoryEntry.report_id == report.id).order_by(StatusHistoryEntry.id)
    ).scalars().all()
    latest.changed_at = first.changed_at - timedelta(seconds=5)
    db.commit()

    codes = [get_catalog().status_by_id(e.status_id).code for e in list_status_history(db, report.id, actor)]
    assert codes == ["open_in_progress", "waiting_admitted"]
