"""
Personal Ledger — FastAPI Application.

This is the entry point for the application.
All routers and error handlers are registered here.
"""

from fastapi import FastAPI

from personal_ledger.config import get_settings
from personal_ledger.logging_config import configure_logging
from personal_ledger.api.errors import register_error_handlers
from personal_ledger.api.health import router as health_router
from personal_ledger.api.transactions import router as transactions_router
from personal_ledger.api.finance import router as finance_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ledger of income, expenses and transfers with cached account balances",
)

register_error_handlers(app)

# Register routers
app.include_router(health_router)
app.include_router(transactions_router)
app.include_router(finance_router)
