"""
backend/livematch/main.py

Purpose:
    FastAPI application bootstrap: logging, middleware/router wiring and the
    live session lifecycle (bootstrap + odds feed on startup, orderly stop on
    shutdown).

Dependencies:
    - livematch.config
    - livematch.services.live_session
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from livematch.config import settings
from livematch.middleware.logging import StructuredLoggingMiddleware, setup_logging
from livematch.services.live_session import build_session

logger = logging.getLogger("livematch")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    session = build_session(settings)
    app.state.live_session = session
    await session.start(autostart=settings.AUTOSTART_FEED)
    logger.info("Live match service started")

    yield

    await session.stop()
    logger.info("Live match service stopped")


app = FastAPI(
    title="LiveMatch",
    description="Live match odds stream",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Structured logging
app.add_middleware(StructuredLoggingMiddleware)

# Routers
from livematch.routers.matches import router as matches_router
from livematch.routers.ws import router as ws_router

app.include_router(matches_router)
app.include_router(ws_router)
