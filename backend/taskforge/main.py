import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskforge.auth import AuthMiddleware, fetch_jwks
from taskforge.config import settings
from taskforge.database import engine, ping
from taskforge.errors import DependencyError, NotFoundError, StartupFailure, ValidationError
from taskforge.routers import logs_router, system_router, tasks_router, users_router
from taskforge.services.blob_store import BlobStore
from taskforge.services.identity import IdentityDirectory


def configure_logging():
    """Configure application-wide logging with proper formatting."""
    log_level = logging.DEBUG if settings.environment == "development" else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )

    # Set specific log levels for noisy libraries
    for name in ("httpx", "httpcore", "urllib3", "botocore", "boto3", "s3transfer"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {logging.getLevelName(log_level)} level")
    return logger


logger = configure_logging()


def run_migrations() -> None:
    """Run database migrations using Alembic."""
    backend_dir = Path(__file__).parent.parent
    alembic_ini_path = backend_dir / "alembic.ini"

    if not alembic_ini_path.exists():
        logger.warning(f"alembic.ini not found at {alembic_ini_path}, skipping migrations")
        return

    alembic_cfg = Config(str(alembic_ini_path))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed successfully")


def verify_database() -> None:
    """Fail startup when the database cannot be reached."""
    logger.info("Checking database connection")
    try:
        ping()
    except Exception as e:
        raise StartupFailure(f"Database connection not established at {engine.url!r}: {e}") from e
    logger.info(f"Database connection established successfully at {engine.url!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup/shutdown events."""
    try:
        if settings.verify_database_on_startup:
            verify_database()
        if settings.run_migrations:
            run_migrations()

        app.state.jwks = await fetch_jwks(settings.auth0_jwks_url) if settings.auth0_jwks_url else None
    except StartupFailure as e:
        logger.critical(f"Application terminated unexpectedly: {e}")
        raise

    logger.info("Configuring blob store")
    app.state.blob_store = BlobStore.from_settings(settings)

    app.state.identity_directory = None
    if settings.auth0_domain:
        logger.info(f"Configuring identity directory for {settings.auth0_domain}")
        app.state.identity_directory = IdentityDirectory.from_settings(settings)

    yield

    if app.state.identity_directory is not None:
        await app.state.identity_directory.aclose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Taskforge API",
    description="Personal task management with image attachments and audit trail",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation_error", "message": exc.message, "fields": exc.fields},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    fields: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "request"
        fields.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "message": "One or more validation errors occurred.",
            "fields": fields,
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(DependencyError)
async def dependency_error_handler(request: Request, exc: DependencyError):
    logger.error(
        f"Dependency failure in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Upstream dependency failed", "dependency": exc.dependency},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to catch and log all unhandled exceptions."""
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {exc!r}",
        exc_info=True,
        extra={
            "method": request.method,
            "url": str(request.url),
            "client": request.client.host if request.client else None,
            "exception_type": type(exc).__name__,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.environment == "development" else "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests and responses."""
    logger.info(f"→ {request.method} {request.url.path}")

    try:
        response = await call_next(request)
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.log(log_level, f"← {request.method} {request.url.path} → {response.status_code}")
        return response
    except Exception as e:
        logger.error(
            f"← {request.method} {request.url.path} → EXCEPTION: {e!r}",
            exc_info=True,
        )
        raise


@app.middleware("http")
async def add_response_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("Cache-Control", "private, max-age=3600, must-revalidate")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    return response


app.add_middleware(AuthMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ROUTERS = [
    (tasks_router, "Tasks"),
    (users_router, "Users"),
    (logs_router, "Logs"),
    (system_router, "System"),
]

for router, tag in ROUTERS:
    app.include_router(router, tags=[tag])


@app.get("/health", tags=["Health"], include_in_schema=True)
async def health_check():
    return {"status": "healthy", "version": app.version}


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Welcome to Taskforge API", "docs": "/docs", "redoc": "/redoc"}
