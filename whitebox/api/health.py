"""Health check endpoint."""

from fastapi import APIRouter

from whitebox.services.status_catalog import get_catalog

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Return API health status and the size of the loaded transition table."""
    catalog = get_catalog()
    return {"status": "ok", "statuses": len(catalog.statuses), "transitions": catalog.rule_count}
