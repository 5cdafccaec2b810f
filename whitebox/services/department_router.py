"""Department routing.

``match_department`` is a pure function over immutable snapshots so it can be
re-run whenever department scopes or report attributes change. Each scope axis
is either a wildcard (matches any value) or a concrete set. Stored scopes that
are NULL or an empty list both read back as a wildcard.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass

from whitebox.models.department import Department
from whitebox.models.report import Report, ReportRiskCategory


def _country_key(value: str) -> str:
    return value.strip().casefold()


@dataclass(frozen=True)
class Scope:
    values: frozenset | None = None

    @classmethod
    def any(cls) -> "Scope":
        return cls(None)

    @classmethod
    def of(cls, values: Iterable[Hashable], normalize: Callable | None = None) -> "Scope":
        if normalize is not None:
            values = (normalize(v) for v in values)
        return cls(frozenset(values))

    @classmethod
    def from_column(cls, raw: list | None, normalize: Callable | None = None) -> "Scope":
        """NULL or an empty list is a wildcard, anything else a concrete set."""
        if not raw:
            return cls.any()
        return cls.of(raw, normalize)

    @property
    def is_wildcard(self) -> bool:
        return self.values is None

    def admits(self, report_values: Iterable[Hashable | None]) -> bool:
        if self.values is None:
            return True
        return any(v is not None and v in self.values for v in report_values)

    def to_column(self) -> list | None:
        if self.values is None:
            return None
        return sorted(self.values)


@dataclass(frozen=True)
class ReportAttributes:
    reported_org_id: int
    risk_category_ids: frozenset[int] = frozenset()
    risk_subcategory_ids: frozenset[int] = frozenset()
    country: str | None = None
    supplier_org_id: int | None = None
    worksite_id: int | None = None

    @classmethod
    def from_report(cls, report: Report, risks: Iterable[ReportRiskCategory] = ()) -> "ReportAttributes":
        risks = list(risks)
        country = report.event_country or report.country
        return cls(
            reported_org_id=report.reported_org_id,
            risk_category_ids=frozenset(r.category_id for r in risks),
            risk_subcategory_ids=frozenset(r.sub_category_id for r in risks if r.sub_category_id is not None),
            country=_country_key(country) if country else None,
            supplier_org_id=report.supplier_org_id,
            worksite_id=report.worksite_id,
        )


@dataclass(frozen=True)
class DepartmentScope:
    department_id: int
    organization_id: int
    name: str
    priority: int
    is_active: bool
    risk_categories: Scope = Scope()
    risk_subcategories: Scope = Scope()
    countries: Scope = Scope()
    supplier_orgs: Scope = Scope()
    worksites: Scope = Scope()

    @classmethod
    def from_model(cls, department: Department) -> "DepartmentScope":
        return cls(
            department_id=department.id,
            organization_id=department.organization_id,
            name=department.name,
            priority=department.priority,
            is_active=department.is_active,
            risk_categories=Scope.from_column(department.scope_risk_category_ids),
            risk_subcategories=Scope.from_column(department.scope_risk_subcategory_ids),
            countries=Scope.from_column(department.scope_country_codes, _country_key),
            supplier_orgs=Scope.from_column(department.scope_supplier_org_ids),
            worksites=Scope.from_column(department.scope_worksite_ids),
        )

    def matches(self, attrs: ReportAttributes) -> bool:
        return (
            self.risk_categories.admits(attrs.risk_category_ids)
            and self.risk_subcategories.admits(attrs.risk_subcategory_ids)
            and self.countries.admits([attrs.country])
            and self.supplier_orgs.admits([attrs.supplier_org_id])
            and self.worksites.admits([attrs.worksite_id])
        )


def match_department(
    attrs: ReportAttributes,
    departments: Sequence[DepartmentScope],
) -> DepartmentScope | None:
    """Return the matching department with the lowest priority number, or None.

    Only active departments of the reported organisation are candidates. Equal
    priorities fall back to the lower department id.
    """
    candidates = sorted(
        (d for d in departments if d.is_active and d.organization_id == attrs.reported_org_id),
        key=lambda d: (d.priority, d.department_id),
    )
    for department in candidates:
        if department.matches(attrs):
            return department
    return None
