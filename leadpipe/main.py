"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadpipe import __version__
from leadpipe.api.middleware import RequestIDMiddleware
from leadpipe.api.routes import api_router
from leadpipe.logging_config import setup_logging
from leadpipe.persistence.database import Database
from leadpipe.settings import settings
from leadpipe.workers import meta_fetch_worker, sla_worker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    The database handle is created once here and shared with request
    handlers through ``app.state``.
    """
    # Startup
    database = Database(settings.database_url)
    app.state.database = database
    logger.info("Application started", extra={"environment": settings.environment})
    yield
    # Shutdown
    await database.dispose()


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="LeadPipe API",
        description="Multi-tenant lead intake and pipeline tracking for foster care agencies",
        version=__version__,
        lifespan=lifespan,
    )

    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=bool(origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    # Include API routes
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    # Scheduler endpoints
    app.include_router(sla_worker.router, prefix="/workers", tags=["workers"])
    app.include_router(meta_fetch_worker.router, prefix="/workers", tags=["workers"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
