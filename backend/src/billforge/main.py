"""
FastAPI application entry point.

This is the main application that ties together all components:
- API routes for documents, ledger, profile, clients and catalog
- Database lifecycle management
- CORS configuration for frontend access
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billforge import __version__
from billforge.api.routes import directory, documents, health, ledger, profile, suggestions, totals
from billforge.config import get_settings
from billforge.domain.errors import (
    BillingError,
    ExportError,
    NotFound,
    NumberingExhaustedError,
    SuggestionUnavailableError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


ERROR_STATUS: list[tuple[type[BillingError], int]] = [
    (ValidationError, 422),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NumberingExhaustedError, status.HTTP_409_CONFLICT),
    (ExportError, status.HTTP_502_BAD_GATEWAY),
    (SuggestionUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: BillingError) -> int:
    """HTTP status for a billing error (400 for anything unmapped)."""
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Initialize database tables (when a database is configured)
    - Create the export directory
    - Clean up on shutdown
    """
    settings = get_settings()

    logger.info(f"Starting billforge v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")

    if settings.database_url is not None:
        from billforge.infrastructure.database import close_db, init_db

        await init_db()
        logger.info("Database initialized")
    else:
        logger.info("No database configured, using in-memory store")

    settings.export_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Export path: {settings.export_path}")

    yield  # Application runs here

    logger.info("Shutting down billforge")
    if settings.database_url is not None:
        await close_db()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="billforge API",
        description=(
            "Quotations, invoices and a cash ledger for small businesses.\n\n"
            "Computes totals, tracks document status, records sales when "
            "invoices are paid and renders paginated PDF documents."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(profile.router, prefix="/api/v1")
    app.include_router(documents.router, prefix="/api/v1")
    app.include_router(totals.router, prefix="/api/v1")
    app.include_router(ledger.router, prefix="/api/v1")
    app.include_router(directory.router, prefix="/api/v1")
    app.include_router(suggestions.router, prefix="/api/v1")

    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError):
        """Translate typed billing errors into JSON responses."""
        code = status_for(exc)
        if code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=code, content={**exc.to_dict(), "code": exc.code})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        if settings.debug:
            detail = str(exc)
        else:
            detail = "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": detail,
            },
        )

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "billforge.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
