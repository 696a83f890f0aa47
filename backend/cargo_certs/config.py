import json
import re
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = Field(default="Cargo Certificates API", validation_alias="PROJECT_NAME")
    environment: str = "dev"
    build_version: Optional[str] = None
    database_url: str = "sqlite+pysqlite:///./cargo-certs-dev.db"
    # Router prefix; configured via API_V1_STR (e.g. "/api").
    api_prefix: str = Field(default="/api", validation_alias="API_V1_STR")
    enable_docs: Optional[bool] = Field(default=None, validate_default=True)
    secret_key: str = "dev-only-secret-key-0123456789"
    access_token_expire_minutes: int = 60 * 12
    algorithm: str = "HS256"
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=list, validate_default=True)

    # Frankfurter exchange-rate API (ECB reference rates).
    exchange_rate_api_base: str = "https://api.frankfurter.dev/v1"
    exchange_rate_timeout_seconds: int = 10

    # Dev bootstrap account created at startup outside prod/test.
    seed_admin_email: str = "admin@cargo.local"
    seed_admin_password: str = "admin123"

    # Apply alembic migrations on startup (skipped in test).
    run_migrations_on_start: bool = False

    @field_validator("enable_docs", mode="before")
    @classmethod
    def default_enable_docs(cls, value, info):
        if value is None or value == "":
            env = str(info.data.get("environment", "dev") or "dev").lower()
            return env in {"dev", "development", "test"}
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "y", "on"}
        return bool(value)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value, info):
        env = str(info.data.get("environment", "dev") or "dev").lower()

        def _normalize_origin(o: str) -> str:
            s = str(o).strip().strip('"').strip("'")
            # Browsers send the Origin header without a trailing slash.
            return s[:-1] if s.endswith("/") else s

        if value is None or value == "" or value == []:
            if env in {"prod", "production"}:
                raise ValueError("CORS_ORIGINS must be explicitly set in production")
            return ["http://localhost:3000", "http://127.0.0.1:3000"]

        if isinstance(value, str):
            s = value.strip()
            try:
                parsed = json.loads(s)
                if isinstance(parsed, list):
                    return [_normalize_origin(v) for v in parsed if str(v).strip()]
                return [_normalize_origin(str(parsed))]
            except json.JSONDecodeError:
                pass
            return [_normalize_origin(v) for v in s.split(",") if str(v).strip()]

        return [_normalize_origin(v) for v in value]

    @field_validator("api_prefix", mode="before")
    @classmethod
    def normalize_api_prefix(cls, v) -> str:
        if v is None:
            return ""
        s = str(v).strip().rstrip("/")
        if not s:
            return ""
        # Git Bash on Windows may rewrite "/api" into a filesystem path.
        m = re.search(r"(/api(/[^\s]*)?)$", s.replace("\\", "/"))
        if m:
            return m.group(1)
        return s if s.startswith("/") else f"/{s}"

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, v) -> str:
        """Route Postgres URLs to psycopg3 and pin relative SQLite paths to the backend folder."""

        s = str(v or "").strip()
        if s.startswith("postgres://"):
            s = "postgresql://" + s[len("postgres://") :]
        if s.startswith("postgresql://"):
            return "postgresql+psycopg://" + s[len("postgresql://") :]
        if not s.startswith("sqlite"):
            return s

        marker = ":///"
        i = s.find(marker)
        if i == -1:
            return s
        path_part = s[i + len(marker) :]
        if path_part.startswith("./"):
            backend_root = Path(__file__).resolve().parents[1]
            abs_path = (backend_root / path_part[2:]).resolve().as_posix()
            return f"{s[: i + len(marker)]}{abs_path}"
        return s

    @field_validator("database_url")
    @classmethod
    def validate_database_url_for_environment(cls, v: str, info) -> str:
        env = str(info.data.get("environment", "dev") or "dev").strip().lower()
        if env in {"prod", "production"} and v.startswith("sqlite"):
            raise ValueError("SQLite DATABASE_URL is not allowed in production")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if not v or v.lower() in {"change-me", "secret"} or len(v) < 16:
            raise ValueError("SECRET_KEY must be set to a strong value")
        return v


settings = Settings()
