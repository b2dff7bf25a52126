"""
ERP Ledger Engine: FastAPI application.

Entry point for the posting engine. Logging is configured before
the app is built; all routers are registered here.
"""

from fastapi import FastAPI

from erp_ledger.config import get_settings
from erp_ledger.logging_config import configure_logging
from erp_ledger.api.health import router as health_router
from erp_ledger.api.ledger import router as ledger_router
from erp_ledger.api.postings import router as postings_router
from erp_ledger.api.recurring import router as recurring_router

settings = get_settings()
configure_logging(settings)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry posting engine for a multi-tenant SYSCOHADA ERP",
)

app.include_router(health_router)
app.include_router(ledger_router)
app.include_router(postings_router)
app.include_router(recurring_router)
