"""
Church Ledger — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from church_ledger.config import get_settings
from church_ledger.store import StoreError
from church_ledger.api.health import router as health_router
from church_ledger.api.accounts import router as accounts_router
from church_ledger.api.entries import router as entries_router
from church_ledger.api.budgets import router as budgets_router
from church_ledger.api.liabilities import router as liabilities_router
from church_ledger.api.reconciliations import router as reconciliations_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Church finance ledger: entries, balances, budgets, reconciliations",
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": f"Ledger store unavailable: {exc.operation} on {exc.table}"},
    )


# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(entries_router)
app.include_router(budgets_router)
app.include_router(liabilities_router)
app.include_router(reconciliations_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
