import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from cargo_certs.config import settings

db_url = str(settings.database_url)
is_postgres = db_url.startswith("postgresql")
is_sqlite = db_url.startswith("sqlite")

POOL_CONFIG = {
    "driver": db_url.split(":", 1)[0],
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")) if is_postgres else None,
    "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")) if is_postgres else None,
}

engine_kwargs: dict = {"future": True}

if is_sqlite:
    # TestClient and uvicorn threadpools share connections across threads.
    engine_kwargs["connect_args"] = {"check_same_thread": False}

if is_postgres:
    # Avoid long hangs on DB outages (psycopg3 supports connect_timeout in seconds).
    engine_kwargs["connect_args"] = {
        "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", "10"))
    }
    engine_kwargs.update(
        pool_pre_ping=True,
        pool_size=POOL_CONFIG["pool_size"],
        max_overflow=POOL_CONFIG["max_overflow"],
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE_SECONDS", "1800")),
    )

engine = create_engine(db_url, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
