import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from cargo_certs import models
from cargo_certs.api.router import api_router
from cargo_certs.config import settings
from cargo_certs.core.observability import (
    global_exception_handler,
    request_logging_middleware,
    service_error_handler,
    uptime_seconds,
    utc_now_iso,
)
from cargo_certs.core.security import hash_password
from cargo_certs.database import POOL_CONFIG, SessionLocal
from cargo_certs.services.errors import ServiceError

api_prefix = settings.api_prefix

logger = logging.getLogger("cargo_certs")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    openapi_url=(f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
    if settings.enable_docs
    else None,
)

# Expose logger for middleware without creating circular imports.
app.state.logger = logger

app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Request-level logging + request correlation id.
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)

app.include_router(api_router, prefix=api_prefix)


def _run_migrations_if_configured() -> None:
    if not settings.run_migrations_on_start:
        return
    if (settings.environment or "").lower() == "test":
        return

    from alembic import command
    from alembic.config import Config

    backend_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_root / "alembic.ini"))
    try:
        command.upgrade(alembic_cfg, "head")
        logger.info("migrations_applied")
    except Exception as e:
        # Endpoints that need the DB will fail on their own; keep the API up.
        logger.error("migrations_failed", extra={"error": str(e)})


def _seed_dev_admin() -> None:
    env = str(settings.environment or "dev").lower()
    if env in {"prod", "production", "test"}:
        return

    db = SessionLocal()
    try:
        email = settings.seed_admin_email.strip().lower()
        existing = db.query(models.Profile).filter(models.Profile.email == email).first()
        if existing:
            return
        db.add(
            models.Profile(
                email=email,
                full_name="Admin",
                hashed_password=hash_password(settings.seed_admin_password),
                role=models.RoleName.admin,
                active=True,
            )
        )
        db.commit()
        logger.info("dev_admin_seeded", extra={"email": email})
    except SQLAlchemyError as e:
        # Database not ready yet (e.g., missing tables) - don't block startup.
        logger.warning("dev_admin_seed_failed", extra={"error": str(e)})
        db.rollback()
    finally:
        db.close()


@app.on_event("startup")
def _startup():
    logger.info(
        "runtime_config",
        extra={
            "pid": os.getpid(),
            "environment": settings.environment,
            "db_pool": POOL_CONFIG,
        },
    )
    _run_migrations_if_configured()
    _seed_dev_admin()


@app.get("/", tags=["meta"])
def root():
    docs_path = (
        (f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
        if settings.enable_docs
        else None
    )
    return {"message": settings.app_name, "docs": docs_path}


@app.get("/health", tags=["meta"])
@app.get("/healthz", tags=["meta"])
def healthcheck():
    """Liveness probe. Keep the payload stable for monitoring."""

    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "uptime_seconds": round(uptime_seconds(), 2),
        "version": settings.build_version,
    }
