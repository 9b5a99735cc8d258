"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Middleware (CORS, request context, timing, security headers)
- Exception handlers (APIException, HTTPException, RequestValidationError, general)
- API routers (v1)
- Health check endpoint
- Startup/shutdown of the database engine and the Qdrant client
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from knowledge_assistant import __version__
from knowledge_assistant.api.v1.router import router as v1_router
from knowledge_assistant.clients.vector_store import close_vector_store
from knowledge_assistant.config import get_settings
from knowledge_assistant.database import check_connection, close_db, init_db
from knowledge_assistant.exceptions import APIException, ValidationError
from knowledge_assistant.middleware import setup_middleware
from knowledge_assistant.utils.logging import get_logger, log_error, setup_logging

setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database on startup and release it on shutdown."""
    logger.info("Starting Knowledge Assistant service...")
    await init_db()
    logger.info("Knowledge Assistant service started successfully")
    try:
        yield
    finally:
        logger.info("Shutting down Knowledge Assistant service...")
        await close_db()
        close_vector_store()
        logger.info("Knowledge Assistant service shut down successfully")


app = FastAPI(
    title="Knowledge Assistant",
    description=(
        "Indexes a user's Google Drive documents and Calendar meetings, answers "
        "questions over them and prepares meeting briefs."
    ),
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
)

setup_middleware(app)
app.include_router(v1_router)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions."""
    if exc.status_code >= 500:
        log_error(
            exc,
            context={
                "method": request.method,
                "path": request.url.path,
                "status_code": exc.status_code,
                "code": exc.code,
            },
        )
    else:
        logger.warning(f"{exc.code}: {request.method} {request.url.path} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (404, 405, etc.)."""
    logger.warning(f"{exc.status_code}: {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.detail,
                "code": "HTTP_ERROR",
                "status_code": exc.status_code,
                "details": {},
            }
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing request fields are client errors (400)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error: {request.method} {request.url.path}: {errors}")

    validation_error = ValidationError(errors=errors)
    return JSONResponse(status_code=validation_error.status_code, content=validation_error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    log_error(exc, context={"method": request.method, "path": request.url.path, "unhandled": True})

    if settings.is_production:
        message = "An internal server error occurred"
    else:
        message = str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": message,
                "code": "INTERNAL_SERVER_ERROR",
                "status_code": 500,
                "details": {} if settings.is_production else {"exception_type": type(exc).__name__},
            }
        },
    )


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness plus a database connectivity check."""
    database_ok = await check_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": settings.app_name,
        "version": __version__,
        "environment": settings.environment.value,
        "database": "connected" if database_ok else "unavailable",
    }
