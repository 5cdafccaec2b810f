"""Status catalog read API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from whitebox.db.session import get_db
from whitebox.schemas.status import StatusOut, TransitionRuleOut
from whitebox.services.status_catalog import StatusCatalog, TransitionRule, refresh_catalog_if_stale

router = APIRouter(tags=["catalog"])


def rule_out(catalog: StatusCatalog, rule: TransitionRule) -> TransitionRuleOut:
    return TransitionRuleOut(
        from_status=catalog.status_by_id(rule.from_status_id).code,
        to_status=catalog.status_by_id(rule.to_status_id).code,
        requires_comment=rule.requires_comment,
        requires_action=rule.requires_action,
    )


@router.get("/statuses", response_model=list[StatusOut])
def list_statuses(db: Session = Depends(get_db)):
    """Statuses in display (stepper) order. This is not the transition graph."""
    return refresh_catalog_if_stale(db).statuses


@router.get("/transitions", response_model=list[TransitionRuleOut])
def list_transitions(from_status: str | None = None, db: Session = Depends(get_db)):
    catalog = refresh_catalog_if_stale(db)
    if from_status:
        rules = catalog.rules_from(catalog.status_by_code(from_status).status_id)
    else:
        rules = catalog.all_rules()
    return [rule_out(catalog, rule) for rule in rules]
