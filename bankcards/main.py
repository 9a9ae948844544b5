"""
FastAPI application shell.

This module creates and configures the FastAPI application:
  1. Lifespan manager — logging setup, table creation, engine disposal
  2. CORS middleware
  3. Exception handlers — map domain error kinds to HTTP responses
  4. Health check

Business routes are mounted by the HTTP layer on top of this app; they
resolve the caller with bankcards.dependencies and call the service
functions in bankcards.services.

Running locally:
    uvicorn bankcards.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import bankcards.models  # noqa: F401  (registers every table on Base.metadata)
from bankcards.config import settings
from bankcards.database import engine, Base
from bankcards.exceptions import register_exception_handlers
from bankcards.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Configures logging and creates all tables if they don't exist. In
      production, schema changes belong in versioned migrations instead.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    setup_logging(settings.LOG_LEVEL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bank card management: session tokens and card-to-card transfers",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
