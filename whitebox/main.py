"""whitebox FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from whitebox.api import actions, admin, auth, catalog, departments, health, reports
from whitebox.core.config import settings
from whitebox.core.errors import WorkflowError, workflow_error_handler
from whitebox.db.session import SessionLocal
from whitebox.services.auth_service import ensure_bootstrap_admin
from whitebox.services.catalog_seed import seed_catalog
from whitebox.services.status_catalog import load_catalog

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load and validate the status catalog before serving; a bad catalog aborts startup."""
    db = SessionLocal()
    try:
        if settings.seed_catalog:
            seed_catalog(db)
        load_catalog(db)
        ensure_bootstrap_admin(db)
    finally:
        db.close()
    yield


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_exception_handler(WorkflowError, workflow_error_handler)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(reports.router)
app.include_router(actions.router)
app.include_router(departments.router)
app.include_router(admin.router)
