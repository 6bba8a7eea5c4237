"""
DockDock Web - FastAPI application.

Serves the onboarding wizard API. Authentication is delegated to the
DockDock backend: callers' bearer tokens are forwarded on every call.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dockdock import __version__
from dockdock.config import settings
from onboarding import api as onboarding_api

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration on startup; release open wizard sessions on shutdown."""
    logger.info("DockDock onboarding starting up...")
    logger.info(f"  Backend: {settings.dockdock_api_base_url}")
    logger.info(f"  Environment: {settings.dockdock_env}")
    yield

    open_sessions = list(onboarding_api.sessions.values())
    onboarding_api.sessions.clear()
    for session in open_sessions:
        session.controller.close()
        await session.release()
    if open_sessions:
        logger.info(f"Released {len(open_sessions)} open onboarding session(s)")


app = FastAPI(title="DockDock Onboarding", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(onboarding_api.router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "service": "dockdock-onboarding"}
