"""
Tripmates FastAPI Application

Main entry point for the Tripmates API.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Common library imports
from common.database import MongoDB, set_main_database
from common.i18n import I18nService
from common.utils import APIException, success_response, error_response

# App-specific imports
from tripmates.config import settings
from tripmates.database import COLLECTION_INDEXES

# Import routers
from tripmates.routers import (
    auth_router,
    user_router,
    group_router,
    group_join_router,
    trip_router,
    private_message_router,
    group_message_router,
    report_router,
    block_router,
    catalog_router,
)

# Import service initialization
from tripmates.dependencies import init_all_services
from tripmates.middleware import I18nMiddleware

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tripmates")


# =============================================================================
# Shared Instances
# =============================================================================
main_db = MongoDB()

i18n_service = I18nService(
    locales_dir=str(Path(__file__).parent / "tripmates" / "locales"),
    default_language=settings.DEFAULT_LANGUAGE,
    supported_languages=settings.get_supported_languages(),
)


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    logger.info("Starting Tripmates API...")
    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    set_main_database(main_db)
    logger.info(f"Connected to database: {settings.MONGODB_DATABASE}")

    await main_db.ensure_indexes(COLLECTION_INDEXES)

    init_all_services(db=main_db.db)
    logger.info("All services initialized")

    yield

    logger.info("Shutting down Tripmates API...")
    await main_db.disconnect()
    logger.info("Tripmates API shut down complete.")


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="Tripmates API",
    description="Plan trips and travel together",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# Middleware
# =============================================================================
app.middleware("http")(I18nMiddleware(i18n_service))

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Handlers
# =============================================================================
def _language(request: Request) -> str:
    return getattr(request.state, "language", None) or settings.DEFAULT_LANGUAGE


def _localize(code: str, language: str, default: str, details=None) -> str:
    options = details if isinstance(details, dict) else {}
    options = {key: value for key, value in options.items() if isinstance(value, (str, int, float))}
    return i18n_service.t(f"errors.{code}", language, default=default, **options)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    message = exc.message
    if exc.code:
        message = _localize(exc.code, _language(request), exc.message, exc.details)

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.details}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message, code=exc.code, details=exc.details),
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message, code=f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    message = _localize("VALIDATION_ERROR", _language(request), "Validation error")
    return JSONResponse(
        status_code=422,
        content=error_response(message, code="VALIDATION_ERROR", errors=errors),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = _localize("INTERNAL_ERROR", _language(request), "Internal server error")
    return JSONResponse(
        status_code=500,
        content=error_response(message, code="INTERNAL_ERROR"),
    )


# =============================================================================
# Include Routers (all under /api prefix)
# =============================================================================
API_PREFIX = "/api"

app.include_router(auth_router, prefix=API_PREFIX, tags=["Authentication"])
app.include_router(user_router, prefix=API_PREFIX, tags=["Users"])
app.include_router(group_router, prefix=API_PREFIX, tags=["Groups"])
app.include_router(group_join_router, prefix=API_PREFIX, tags=["Group join requests"])
app.include_router(trip_router, prefix=API_PREFIX, tags=["Trips"])
app.include_router(private_message_router, prefix=API_PREFIX, tags=["Private messages"])
app.include_router(group_message_router, prefix=API_PREFIX, tags=["Group messages"])
app.include_router(report_router, prefix=API_PREFIX, tags=["Reports"])
app.include_router(block_router, prefix=API_PREFIX, tags=["Blocks"])
app.include_router(catalog_router, prefix=API_PREFIX, tags=["Catalog"])


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
