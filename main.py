import logging
import logging.handlers
import os
import sys
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

import click
import uvicorn
from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.core.decorator import DBException, ServiceError
from app.core.init import initialize_application
from app.core.limiter import custom_rate_limit_exceeded_handler, limiter
from app.models import *
from app.routers import routes
from app.services.admin import get_configuration_status

# ============================================================================
# Directory Setup
# ============================================================================
BASE_DIR = Path(__file__).parent
LOG_FILE = BASE_DIR / settings.log_file
LOGS_DIR = LOG_FILE.parent
STORAGE_DIR = BASE_DIR / settings.upload_dir

# Create directories with proper permissions
for directory in [LOGS_DIR, STORAGE_DIR]:
    directory.mkdir(parents=True, exist_ok=True)
    os.chmod(directory, 0o755)


# ============================================================================
# Logging Configuration
# ============================================================================
def setup_logging():
    """Configure logging for the application."""
    log_level = logging.DEBUG if settings.debug else settings.log_level.upper()
    log_format = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] %(message)s"

    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.handlers.RotatingFileHandler(
            LOG_FILE,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        ),
    ]

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    # Suppress verbose third-party logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ============================================================================
# Application Lifespan
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, bootstrap the superadmin and report missing integrations."""
    logger.info(f"Starting {settings.app_name} {settings.app_version}")

    try:
        Base.metadata.create_all(bind=engine)

        db = SessionLocal()
        try:
            initialize_application(db)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"✗ Failed during startup: {e}", exc_info=True)
        raise

    integrations = get_configuration_status()
    if not integrations["stripe_secret_key"]:
        logger.warning("STRIPE_SECRET_KEY is not set; payments will fail")
    if not integrations["stripe_webhook_secret"]:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; webhooks will be rejected")
    if not integrations["s3_credentials"]:
        logger.warning("S3 credentials are not set; video uploads will fail")
    if not os.access(STORAGE_DIR, os.W_OK):
        logger.warning(f"Thumbnail storage {STORAGE_DIR} is not writable")

    logger.info("✓ Marketplace ready")

    yield

    logger.info("✓ Marketplace shut down")


# ============================================================================
# FastAPI Application
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
)

# ============================================================================
# Middleware Configuration
# ============================================================================
app.state.limiter = limiter

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = f"{process_time:.4f}"
    return response


# Request ID middleware for tracing
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Exception Handlers
# ============================================================================
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code.value} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code.value} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code.value},
    )


@app.exception_handler(DBException)
async def db_exception_handler(request: Request, exc: DBException):
    logger.error(f"Database exception: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "type": "database_error"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    # Serialize errors to make them JSON serializable
    details = []
    for error in exc.errors():
        if isinstance(error, dict):
            details.append(error)
        else:
            details.append({"error": str(error)})
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": details,
            "body": str(exc.body),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"SQLAlchemy error: {type(exc).__name__}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Database error occurred",
            "type": str(type(exc).__name__),
        },
    )


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)


# ============================================================================
# Health Check Endpoints
# ============================================================================
@app.get("/")
async def root():
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
    }


@app.get("/health")
@limiter.limit("10/minute")
async def health_check(request: Request):
    """Database reachability plus which payment and upload integrations are set up."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        db_status = "unhealthy"
    finally:
        db.close()

    integrations = get_configuration_status()
    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "timestamp": time.time(),
        "database": db_status,
        "payments": integrations["stripe_secret_key"]
        and integrations["stripe_webhook_secret"],
        "video_uploads": integrations["s3_credentials"],
    }


# ============================================================================
# Static Files & Routes
# ============================================================================
# Course thumbnails; mounted before the routers
app.mount("/storage", StaticFiles(directory=str(STORAGE_DIR)), name="storage")

for router in routes:
    app.include_router(router)


# ============================================================================
# CLI Commands
# ============================================================================
@click.group()
def cli():
    """Course marketplace management CLI."""
    pass


def run_migrations():
    """Upgrade the database to the latest revision; abort the command on failure."""
    try:
        alembic_cfg = Config(str(BASE_DIR / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(BASE_DIR / "migrations"))
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        raise click.ClickException(f"Migration failed: {e}")
    logger.info("✓ Database is at the latest revision")


@cli.command()
def migrate():
    """Apply pending Alembic migrations."""
    run_migrations()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development only)")
def dev(host: str, port: int, reload: bool):
    """Run development server with Uvicorn."""
    logger.info(f"Development server on {host}:{port} (reload={reload})")
    uvicorn.run("main:app", host=host, port=port, reload=reload, log_level="debug")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--workers", default=4, help="Number of worker processes")
def prod(host: str, port: int, workers: int):
    """Migrate the database, then serve with Gunicorn."""
    run_migrations()

    import subprocess

    cmd = [
        "gunicorn",
        "main:app",
        "--worker-class",
        "uvicorn.workers.UvicornWorker",
        "--workers",
        str(workers),
        "--bind",
        f"{host}:{port}",
        "--access-logfile",
        "-",
        "--timeout",
        "120",
    ]
    logger.info(f"Gunicorn on {host}:{port} with {workers} workers")

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        raise click.ClickException(f"Gunicorn exited with {e.returncode}")
    except FileNotFoundError:
        raise click.ClickException("Gunicorn not installed")


@cli.command()
def info():
    """Show version, storage paths and which integrations are configured."""
    click.echo(f"{settings.app_name} {settings.app_version}")
    click.echo(f"Database dialect: {engine.dialect.name}")
    click.echo(f"Thumbnail storage: {STORAGE_DIR.absolute()}")
    click.echo(f"Log file: {LOG_FILE.absolute()}")
    for name, value in get_configuration_status().items():
        click.echo(f"  {name}: {value}")


if __name__ == "__main__":
    cli()
