"""
Vibe Check guardian API.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vibecheck import config, db
from vibecheck.errors import GuardianError
from vibecheck.routes import guardian as guardian_routes

logging.basicConfig(
    level=config.settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Opens the database pool on startup and closes it on shutdown.
    """
    await db.init_pool()
    logger.info("Database pool initialized")

    yield

    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Vibe Check",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.exception_handler(GuardianError)
async def guardian_error_handler(request: Request, exc: GuardianError) -> JSONResponse:
    """Render taxonomy errors as {"ok": false, "error": ...}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


# Register routes
app.include_router(guardian_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
