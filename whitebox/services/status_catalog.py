"""Status catalog and transition table.

The catalog is read-mostly configuration: it is read from the database once at
startup, validated, and kept as an immutable snapshot for every request. Admin
edits to the transition table go through this module, swap in a freshly
validated snapshot and bump a stored revision; other worker processes compare
that revision periodically and reload when it moved.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whitebox.core.config import settings
from whitebox.core.errors import (
    CatalogConfigurationError,
    ConflictError,
    NotFoundError,
    UnknownResultCode,
    ValidationError,
)
from whitebox.models.catalog_revision import CatalogRevision
from whitebox.models.status import FilterResult, ReportStatus, StatusTransition

logger = logging.getLogger(__name__)

INITIAL_STATUS = "pre_evaluation"
TERMINAL_STATUS = "archived"

# Filter result code -> status the report moves to
FILTER_TARGETS: dict[str, str] = {
    "admitted": "waiting_admitted",
    "out_of_scope": TERMINAL_STATUS,
    "unfounded": TERMINAL_STATUS,
    "spam": TERMINAL_STATUS,
}


@dataclass(frozen=True)
class StatusDefinition:
    status_id: int
    code: str
    label: str
    display_order: int


@dataclass(frozen=True)
class TransitionRule:
    from_status_id: int
    to_status_id: int
    requires_comment: bool
    requires_action: bool


@dataclass(frozen=True)
class FilterResultDefinition:
    filter_result_id: int
    code: str
    label: str


class StatusCatalog:
    """Immutable snapshot of statuses, transition rules and filter results."""

    def __init__(
        self,
        statuses: list[StatusDefinition],
        rules: list[TransitionRule],
        filter_results: list[FilterResultDefinition],
    ):
        self.statuses = sorted(statuses, key=lambda s: (s.display_order, s.status_id))
        self._by_code = {s.code: s for s in statuses}
        self._by_id = {s.status_id: s for s in statuses}
        self._rules: dict[int, dict[int, TransitionRule]] = {}
        for rule in rules:
            self._rules.setdefault(rule.from_status_id, {})[rule.to_status_id] = rule
        self.filter_results = list(filter_results)
        self._filter_by_code = {f.code: f for f in filter_results}
        self._filter_by_id = {f.filter_result_id: f for f in filter_results}

    @property
    def initial(self) -> StatusDefinition:
        return self.status_by_code(INITIAL_STATUS)

    @property
    def terminal(self) -> StatusDefinition:
        return self.status_by_code(TERMINAL_STATUS)

    @property
    def rule_count(self) -> int:
        return sum(len(targets) for targets in self._rules.values())

    def status_by_code(self, code: str) -> StatusDefinition:
        status = self._by_code.get(code)
        if status is None:
            raise NotFoundError(f"Unknown status code: {code}")
        return status

    def status_by_id(self, status_id: int) -> StatusDefinition:
        status = self._by_id.get(status_id)
        if status is None:
            raise NotFoundError(f"Unknown status id: {status_id}")
        return status

    def rule(self, from_status_id: int, to_status_id: int) -> TransitionRule | None:
        return self._rules.get(from_status_id, {}).get(to_status_id)

    def rules_from(self, from_status_id: int) -> list[TransitionRule]:
        targets = self._rules.get(from_status_id, {}).values()
        return sorted(targets, key=lambda r: self._by_id[r.to_status_id].display_order)

    def all_rules(self) -> list[TransitionRule]:
        return [rule for status in self.statuses for rule in self.rules_from(status.status_id)]

    def filter_result(self, code: str) -> FilterResultDefinition:
        result = self._filter_by_code.get(code)
        if result is None or code not in FILTER_TARGETS:
            raise UnknownResultCode(f"Unknown filter result code: {code}")
        return result

    def filter_result_by_id(self, filter_result_id: int | None) -> FilterResultDefinition | None:
        if filter_result_id is None:
            return None
        return self._filter_by_id.get(filter_result_id)

    def reachable_from(self, start_id: int) -> set[int]:
        seen = {start_id}
        queue = deque([start_id])
        while queue:
            current = queue.popleft()
            for target_id in self._rules.get(current, {}):
                if target_id not in seen:
                    seen.add(target_id)
                    queue.append(target_id)
        return seen

    def problems(self) -> list[str]:
        """Return every reason this catalog cannot drive the workflow."""
        found: list[str] = []
        for code in (INITIAL_STATUS, TERMINAL_STATUS):
            if code not in self._by_code:
                found.append(f"missing status '{code}'")
        if found:
            return found

        initial_id = self._by_code[INITIAL_STATUS].status_id
        terminal_id = self._by_code[TERMINAL_STATUS].status_id
        for result_code, target_code in FILTER_TARGETS.items():
            if result_code not in self._filter_by_code:
                found.append(f"missing filter result '{result_code}'")
            target = self._by_code.get(target_code)
            if target is None:
                found.append(f"missing status '{target_code}' for filter result '{result_code}'")
            elif self.rule(initial_id, target.status_id) is None:
                found.append(f"no rule {INITIAL_STATUS} -> {target_code} for filter result '{result_code}'")
        if self._rules.get(terminal_id):
            found.append(f"terminal status '{TERMINAL_STATUS}' has outgoing rules")

        reachable = self.reachable_from(initial_id)
        for status in self.statuses:
            if status.status_id not in reachable:
                found.append(f"status '{status.code}' is unreachable from '{INITIAL_STATUS}'")
        return found

    def validate(self) -> None:
        found = self.problems()
        if found:
            raise CatalogConfigurationError("Invalid status catalog: " + "; ".join(found))


def read_catalog(db: Session) -> StatusCatalog:
    """Build a catalog snapshot from the current database state (unvalidated)."""
    statuses = [
        StatusDefinition(status_id=row.id, code=row.code, label=row.label, display_order=row.display_order)
        for row in db.execute(select(ReportStatus)).scalars()
    ]
    rules = [
        TransitionRule(
            from_status_id=row.from_status_id,
            to_status_id=row.to_status_id,
            requires_comment=row.requires_comment,
            requires_action=row.requires_action,
        )
        for row in db.execute(select(StatusTransition)).scalars()
    ]
    filter_results = [
        FilterResultDefinition(filter_result_id=row.id, code=row.code, label=row.label)
        for row in db.execute(select(FilterResult)).scalars()
    ]
    return StatusCatalog(statuses, rules, filter_results)


_lock = threading.Lock()
_catalog: StatusCatalog | None = None
_revision = 0
_checked_at = 0.0


def read_revision(db: Session) -> int:
    revision = db.execute(select(CatalogRevision.revision).where(CatalogRevision.id == 1)).scalar_one_or_none()
    return revision or 0


def _bump_revision(db: Session) -> int:
    result = db.execute(
        update(CatalogRevision)
        .where(CatalogRevision.id == 1)
        .values(revision=CatalogRevision.revision + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(CatalogRevision(id=1, revision=1))
        db.flush()
    return read_revision(db)


def load_catalog(db: Session) -> StatusCatalog:
    """Read, validate and install the process-wide catalog."""
    global _catalog, _revision, _checked_at
    with _lock:
        revision = read_revision(db)
        catalog = read_catalog(db)
        catalog.validate()
        _catalog = catalog
        _revision = revision
        _checked_at = time.monotonic()
    logger.info(
        "Status catalog loaded (revision %d): %d statuses, %d transition rules, %d filter results",
        revision,
        len(catalog.statuses),
        catalog.rule_count,
        len(catalog.filter_results),
    )
    return catalog


def get_catalog() -> StatusCatalog:
    if _catalog is None:
        raise CatalogConfigurationError("Status catalog has not been loaded")
    return _catalog


def refresh_catalog_if_stale(db: Session, max_age: float | None = None) -> StatusCatalog:
    """Reload the snapshot when another process has edited the transition table.

    The stored revision is read at most once every ``max_age`` seconds
    (``catalog_recheck_seconds`` by default).
    """
    global _checked_at
    if max_age is None:
        max_age = settings.catalog_recheck_seconds
    if _catalog is not None and time.monotonic() - _checked_at < max_age:
        return _catalog
    revision = read_revision(db)
    if _catalog is not None and revision == _revision:
        _checked_at = time.monotonic()
        return _catalog
    logger.info("Status catalog revision changed (%d -> %d), reloading", _revision, revision)
    return load_catalog(db)


def _commit_if_valid(db: Session) -> StatusCatalog:
    """Validate pending catalog edits in this session, then commit and install them."""
    global _catalog, _revision, _checked_at
    db.flush()
    candidate = read_catalog(db)
    found = candidate.problems()
    if found:
        db.rollback()
        raise ValidationError("Transition table edit rejected: " + "; ".join(found))
    with _lock:
        try:
            revision = _bump_revision(db)
            db.commit()
        except IntegrityError as e:
            # another process created the revision row first
            db.rollback()
            raise ConflictError("Transition table was edited concurrently; retry") from e
        _catalog = candidate
        _revision = revision
        _checked_at = time.monotonic()
    logger.info("Status catalog reloaded (revision %d): %d transition rules", revision, candidate.rule_count)
    return candidate


def upsert_transition_rule(
    db: Session,
    from_code: str,
    to_code: str,
    requires_comment: bool = False,
    requires_action: bool = False,
) -> TransitionRule:
    """Create or update a transition rule. Callers authorize first."""
    catalog = get_catalog()
    source = catalog.status_by_code(from_code)
    target = catalog.status_by_code(to_code)
    if source.status_id == target.status_id:
        raise ValidationError("A status cannot transition to itself")

    row = db.get(StatusTransition, (source.status_id, target.status_id))
    if row is None:
        row = StatusTransition(from_status_id=source.status_id, to_status_id=target.status_id)
        db.add(row)
    row.requires_comment = requires_comment
    row.requires_action = requires_action

    updated = _commit_if_valid(db)
    return updated.rule(source.status_id, target.status_id)


def delete_transition_rule(db: Session, from_code: str, to_code: str) -> None:
    catalog = get_catalog()
    source = catalog.status_by_code(from_code)
    target = catalog.status_by_code(to_code)
    if catalog.rule(source.status_id, target.status_id) is None:
        raise NotFoundError(f"No transition rule {from_code} -> {to_code}")
    db.execute(
        delete(StatusTransition).where(
            StatusTransition.from_status_id == source.status_id,
            StatusTransition.to_status_id == target.status_id,
        )
    )
    _commit_if_valid(db)
