"""
FreelanceDesk API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("FreelanceDesk API starting up", version=settings.app_version, env=settings.app_env)
    yield
    logger.info("FreelanceDesk API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Freelance project management: clients, jobs, payments, and analytics",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import (  # noqa: E402
    analytics,
    clients,
    jobs,
    payments,
    profile,
    reviews,
    services,
)

app.include_router(analytics.router)
app.include_router(clients.router)
app.include_router(jobs.router)
app.include_router(payments.router)
app.include_router(services.router)
app.include_router(reviews.router)
app.include_router(profile.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
