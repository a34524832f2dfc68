"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from pulsecity import __version__
from pulsecity.config import get_settings
from pulsecity.database import close_db, init_db
from pulsecity.routers import health_router, intelligence_router, metrics_router

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting PulseCity...")

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down PulseCity...")
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="PulseCity",
    description="Health facility load monitoring and coverage alerting",
    version=__version__,
    lifespan=lifespan,
)

# Sessions are issued by the auth service; this app only reads them
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    max_age=86400,  # 24 hours
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(intelligence_router)


@app.get("/")
async def root():
    """Root endpoint - shows API info."""
    return {
        "name": "PulseCity",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
