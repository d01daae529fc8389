"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from config.settings import settings
from src.crm_admin.api.router import router as admin_router
from src.crm_common.database import engine, ping_database
from src.crm_common.errors import AppError, StorageUnavailableError
from src.crm_common.response import error_response
from src.crm_gateway.middleware.request_log import RequestLogMiddleware
from src.crm_ledger.api.router import router as credits_router
from src.crm_messaging.api.router import campaign_simulator, chat_registry
from src.crm_messaging.api.router import router as messaging_router
from src.crm_profile.api.router import router as profile_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection. Shutdown: stop simulations, dispose pool."""
    await ping_database()
    logger.info("%s started", settings.APP_NAME)
    yield
    await campaign_simulator.shutdown()
    chat_registry.close_all()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _error_json(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return _error_json(request, StorageUnavailableError())


app.include_router(profile_router, prefix="/api/v1")
app.include_router(credits_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(messaging_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
