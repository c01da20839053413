"""
Electronic store back-office FastAPI application
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from storeapi.config import get_settings
from storeapi.models.base import close_db, init_db
from storeapi.utils.logging import setup_logging, get_logger, RequestLogger
from storeapi.utils.exceptions import AppException

from storeapi.api.addresses import router as addresses_router
from storeapi.api.geography import router as geography_router


settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
    log_file=settings.LOG_FILE,
)
logger = get_logger(__name__)
request_logger = RequestLogger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle

    Creates tables in development (production uses Alembic) and disposes the
    connection pool on shutdown.
    """
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENV})")

    if settings.is_development:
        await init_db()

    yield

    logger.info("Shutting down")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Electronic store back-office API

- **Addresses**: per-user delivery addresses with a single default address
- **Geography**: states, cities and localities used by addresses
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    await request_logger.log_request(
        request, time.perf_counter() - started, response.status_code
    )
    return response


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Render application exceptions"""
    logger.warning(
        f"AppException: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last-resort handler for unexpected errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An internal server error occurred. Please try again later.",
        },
    )


@app.get("/", tags=["Health"])
async def root():
    return {
        "service": settings.APP_NAME,
        "status": "running",
        "version": settings.APP_VERSION,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check for load balancers"""
    return {"status": "healthy"}


app.include_router(addresses_router)
app.include_router(geography_router)


if __name__ == "__main__":
    uvicorn.run(
        "storeapi.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level="info",
    )
