"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging — root logger level and format from LOG_LEVEL
  2. Lifespan manager — creates tables on startup, disposes the engine on shutdown
  3. CORS middleware — allows the dashboard origin(s) to call the API
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration — mounts all API endpoint groups
  6. Static files — serves stored campaign media under MEDIA_URL_PREFIX

Running locally:
    uvicorn bulkreach.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from bulkreach.config import settings
from bulkreach.database import engine, init_models
from bulkreach.exceptions import register_exception_handlers
from bulkreach.routers import accounts, admin, auth, campaigns, transactions

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Creates all database tables if they don't exist. Production
      deployments should manage the schema with migrations instead.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    await init_models()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bulk messaging campaigns paid for from a points ledger",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])
app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])

# StaticFiles checks the directory at construction time
Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_ROOT), name="media")


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
