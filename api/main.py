"""
FastAPI application initialization and configuration.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import applications, companies, interviews
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


def create_app(lifespan_handler=lifespan) -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Application and interview workflow engine",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan_handler,
    )

    # Setup error handlers (before middleware)
    setup_error_handlers(app, debug=settings.debug)

    # Middleware executes in reverse order of registration
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        log_response_body=settings.log_response_body,
        max_body_size=settings.log_max_body_size,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Outermost: catches anything the handlers did not
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

    app.include_router(health.router, tags=["Health"])
    app.include_router(applications.router, prefix=settings.api_v1_prefix)
    app.include_router(interviews.router, prefix=settings.api_v1_prefix)
    app.include_router(companies.router, prefix=settings.api_v1_prefix)

    return app


app = create_app()
