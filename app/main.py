from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.api.router import api_router
from app.db.async_session import startup_async_database, shutdown_async_database
from app.schemas.auth import ErrorDetail, ErrorResponse
from app.services.async_error_handler import (
    AsyncErrorHandler,
    FormValidationError,
    StoreError,
    SurfacedStoreError,
)
from app.services.session import AuthProviderError, LoginRequiredError, SessionLoadingError
from app.utils.logger import api_logger

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
    redirect_slashes=False,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


def error_response(status_code: int, code: str, message: str, details: dict = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or {}))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(FormValidationError)
async def form_validation_error_handler(request: Request, exc: FormValidationError):
    return error_response(422, "validation_error", exc.message, {"field": exc.field})


@app.exception_handler(SurfacedStoreError)
async def surfaced_store_error_handler(request: Request, exc: SurfacedStoreError):
    error_info = AsyncErrorHandler.classify_error(exc.error)
    api_logger.warning(
        "Store error surfaced to client", exc.presentation,
        path=request.url.path, code=error_info['code'], error=exc.error.message,
    )
    return error_response(
        error_info['status_code'],
        error_info['code'],
        error_info['detail'],
        {"presentation": exc.presentation, **exc.details},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    error_info = AsyncErrorHandler.classify_error(exc)
    api_logger.error("Unhandled store error", "STORE", path=request.url.path, error=exc.message)
    return error_response(error_info['status_code'], error_info['code'], error_info['detail'],
                          {"presentation": "page"})


@app.exception_handler(LoginRequiredError)
async def login_required_handler(request: Request, exc: LoginRequiredError):
    return error_response(401, "login_required", "Please sign in to continue", {"login_url": exc.login_url})


@app.exception_handler(SessionLoadingError)
async def session_loading_handler(request: Request, exc: SessionLoadingError):
    return error_response(503, "session_loading", "Session is still loading, please retry")


@app.exception_handler(AuthProviderError)
async def auth_provider_error_handler(request: Request, exc: AuthProviderError):
    api_logger.warning("Identity provider rejected request", "AUTH", path=request.url.path, error=exc.message)
    return error_response(exc.status_code, "auth_error", exc.message)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    logger.info("Starting up Content Platform API...")

    if settings.STORE_BACKEND == "database":
        await startup_async_database()
        logger.info("Async database initialized successfully")
    else:
        logger.info(f"Post store backend: {settings.STORE_BACKEND}, skipping database pool")

    api_logger.success("Startup completed", "LIFECYCLE", store_backend=settings.STORE_BACKEND)


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on application shutdown."""
    logger.info("Shutting down Content Platform API...")
    await shutdown_async_database()
    logger.info("Content Platform API shutdown completed successfully")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Welcome to Content Platform API"}
