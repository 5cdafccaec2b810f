"""Status catalog validation and transition table edits."""

import pytest
from sqlalchemy import delete

from whitebox.core.errors import CatalogConfigurationError, NotFoundError, UnknownResultCode, ValidationError
from whitebox.models import CatalogRevision, StatusTransition
from whitebox.services.status_catalog import (
    FilterResultDefinition,
    StatusCatalog,
    StatusDefinition,
    TransitionRule,
    delete_transition_rule,
    get_catalog,
    read_revision,
    refresh_catalog_if_stale,
    upsert_transition_rule,
)

STATUSES = [
    StatusDefinition(1, "pre_evaluation", "Pre-evaluation", 10),
    StatusDefinition(2, "waiting_admitted", "Admitted, waiting", 20),
    StatusDefinition(3, "archived", "Archived", 30),
]
FILTER_RESULTS = [
    FilterResultDefinition(1, "admitted", "Admitted"),
    FilterResultDefinition(2, "out_of_scope", "Out of scope"),
    FilterResultDefinition(3, "unfounded", "Unfounded"),
    FilterResultDefinition(4, "spam", "Spam"),
]
RULES = [
    TransitionRule(1, 2, False, False),
    TransitionRule(1, 3, False, False),
    TransitionRule(2, 3, True, False),
]


def test_minimal_catalog_is_valid():
    catalog = StatusCatalog(STATUSES, RULES, FILTER_RESULTS)
    assert catalog.problems() == []
    catalog.validate()
    assert catalog.initial.code == "pre_evaluation"
    assert catalog.terminal.code == "archived"
    assert catalog.rule_count == 3


def test_missing_initial_status_fails_fast():
    catalog = StatusCatalog(STATUSES[1:], [], FILTER_RESULTS)
    with pytest.raises(CatalogConfigurationError, match="pre_evaluation"):
        catalog.validate()


def test_terminal_status_with_outgoing_rule():
    catalog = StatusCatalog(STATUSES, RULES + [TransitionRule(3, 2, False, False)], FILTER_RESULTS)
    assert any("terminal" in p for p in catalog.problems())


def test_unreachable_status_is_reported():
    orphan = StatusDefinition(4, "investigation", "Investigation", 25)
    catalog = StatusCatalog(STATUSES + [orphan], RULES, FILTER_RESULTS)
    assert "status 'investigation' is unreachable from 'pre_evaluation'" in catalog.problems()


def test_filter_result_without_rule_from_initial():
    rules = [TransitionRule(1, 2, False, False), TransitionRule(2, 3, True, False)]
    catalog = StatusCatalog(STATUSES, rules, FILTER_RESULTS)
    problems = catalog.problems()
    assert "no rule pre_evaluation -> archived for filter result 'spam'" in problems


def test_missing_filter_result_code():
    catalog = StatusCatalog(STATUSES, RULES, FILTER_RESULTS[:3])
    assert "missing filter result 'spam'" in catalog.problems()


def test_lookups():
    catalog = StatusCatalog(STATUSES, RULES, FILTER_RESULTS)
    assert catalog.status_by_id(2).code == "waiting_admitted"
    assert catalog.rule(2, 3).requires_comment is True
    assert catalog.rule(3, 1) is None
    assert [r.to_status_id for r in catalog.rules_from(1)] == [2, 3]
    with pytest.raises(NotFoundError):
        catalog.status_by_code("nope")
    with pytest.raises(UnknownResultCode):
        catalog.filter_result("maybe")


def test_default_catalog_loaded(setup_db):
    catalog = get_catalog()
    assert [s.code for s in catalog.statuses] == [
        "pre_evaluation",
        "waiting_admitted",
        "open_in_progress",
        "investigation",
        "remediation",
        "archived",
    ]
    investigation = catalog.status_by_code("investigation")
    remediation = catalog.status_by_code("remediation")
    assert catalog.rule(investigation.status_id, remediation.status_id).requires_action is True
    assert catalog.problems() == []


def test_upsert_rule_reloads_catalog(db):
    catalog = get_catalog()
    waiting = catalog.status_by_code("waiting_admitted")
    investigation = catalog.status_by_code("investigation")
    assert catalog.rule(waiting.status_id, investigation.status_id) is None

    rule = upsert_transition_rule(db, "waiting_admitted", "investigation", requires_comment=True)
    try:
        assert rule.requires_comment is True
        assert get_catalog().rule(waiting.status_id, investigation.status_id) is not None

        upsert_transition_rule(db, "waiting_admitted", "investigation", requires_comment=False)
        assert get_catalog().rule(waiting.status_id, investigation.status_id).requires_comment is False
    finally:
        delete_transition_rule(db, "waiting_admitted", "investigation")
    assert get_catalog().rule(waiting.status_id, investigation.status_id) is None


def test_edit_that_breaks_catalog_is_rejected(db):
    before = get_catalog()
    with pytest.raises(ValidationError, match="terminal"):
        upsert_transition_rule(db, "archived", "investigation")
    assert get_catalog() is before

    # removing the only way into open_in_progress would strand it
    with pytest.raises(ValidationError, match="unreachable"):
        delete_transition_rule(db, "waiting_admitted", "open_in_progress")
    assert get_catalog() is before


def test_self_transition_rejected(db):
    with pytest.raises(ValidationError):
        upsert_transition_rule(db, "investigation", "investigation")


def test_delete_unknown_rule(db):
    with pytest.raises(NotFoundError):
        delete_transition_rule(db, "pre_evaluation", "remediation")


def _rule_written_elsewhere(db, from_code, to_code, present):
    """Change the transition table the way another worker process would."""
    catalog = get_catalog()
    source = catalog.status_by_code(from_code).status_id
    target = catalog.status_by_code(to_code).status_id
    if present:
        db.add(StatusTransition(from_status_id=source, to_status_id=target))
    else:
        db.execute(
            delete(StatusTransition).where(
                StatusTransition.from_status_id == source,
                StatusTransition.to_status_id == target,
            )
        )
    row = db.get(CatalogRevision, 1)
    if row is None:
        db.add(CatalogRevision(id=1, revision=1))
    else:
        row.revision += 1
    db.commit()
    return source, target


def test_edit_bumps_stored_revision(db):
    before = read_revision(db)
    upsert_transition_rule(db, "waiting_admitted", "investigation")
    try:
        assert read_revision(db) == before + 1
    finally:
        delete_transition_rule(db, "waiting_admitted", "investigation")
    assert read_revision(db) == before + 2


def test_stale_snapshot_reloads_after_foreign_edit(db):
    source, target = _rule_written_elsewhere(db, "open_in_progress", "remediation", present=True)
    try:
        # within the recheck window the snapshot is kept
        assert refresh_catalog_if_stale(db, max_age=3600).rule(source, target) is None
        assert refresh_catalog_if_stale(db, max_age=0).rule(source, target) is not None
    finally:
        _rule_written_elsewhere(db, "open_in_progress", "remediation", present=False)
        refresh_catalog_if_stale(db, max_age=0)
    assert get_catalog().rule(source, target) is None


def test_unchanged_revision_keeps_snapshot(db):
    current = refresh_catalog_if_stale(db, max_age=0)
    assert refresh_catalog_if_stale(db, max_age=0) is current
