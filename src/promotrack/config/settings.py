# src/promotrack/config/settings.py
"""
Application configuration management.
Loads settings from environment variables (and an optional .env file) with
sensible defaults.

Record store selection:
1) STORE_BACKEND=postgrest -> hosted REST backend at STORE_URL
2) STORE_BACKEND=sqlite (default) -> local database at DB_PATH
3) Fallback DB path: data/database/promotrack.db (prod) or promotrack_dev.db (dev/test)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from dotenv import load_dotenv


# -------------------------- helpers (pure) --------------------------


def _norm_env_name(raw: Optional[str]) -> str:
    """
    Normalize environment name to one of: dev | prod | test
    Accepts FLASK_ENV compatibility.
    """
    if not raw:
        raw = os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "prod"
    raw = raw.lower().strip()
    if raw in {"development", "debug"}:
        return "dev"
    if raw in {"production", "release"}:
        return "prod"
    if raw in {"testing"}:
        return "test"
    if raw not in {"dev", "prod", "test"}:
        return "prod"
    return raw


def _project_root() -> Path:
    return Path(
        os.getenv("PROJECT_ROOT", Path(__file__).parent.parent.parent.parent)
    ).resolve()


def _default_db_path(env: str, root: Path) -> Path:
    dbdir = root / "data" / "database"
    return (
        (dbdir / "promotrack_dev.db")
        if env in {"dev", "test"}
        else (dbdir / "promotrack.db")
    )


def _choose_db_path(env: str, root: Path) -> str:
    db_path = os.getenv("DB_PATH")
    if db_path:
        return db_path if db_path == ":memory:" else str(Path(db_path).expanduser())
    return str(_default_db_path(env, root))


def _bool(var: str, default: bool = False) -> bool:
    val = os.getenv(var)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _int(var: str, default: int) -> int:
    try:
        return int(os.getenv(var, "").strip() or default)
    except ValueError:
        return default


# -------------------------- dataclasses --------------------------


@dataclass
class DatabaseConfig:
    """Local SQLite database configuration."""

    db_path: str


@dataclass
class StoreConfig:
    """Record store backend selection."""

    backend: str  # sqlite | postgrest
    url: Optional[str]
    service_key: Optional[str]
    timeout: int


@dataclass
class EmailConfig:
    """Transactional email API configuration."""

    api_key: Optional[str]
    api_url: str
    sender: str
    timeout: int


@dataclass
class NotificationConfig:
    """Notification content and trigger configuration."""

    dashboard_url: str
    cron_secret: Optional[str]


@dataclass
class WebConfig:
    """Web server configuration."""

    secret_key: str
    debug: bool
    host: str
    port: int


@dataclass
class Settings:
    """Application settings."""

    environment: str
    project_root: Path
    database: DatabaseConfig
    store: StoreConfig
    email: EmailConfig
    notifications: NotificationConfig
    web: WebConfig


# -------------------------- public API --------------------------


def get_settings(environment: Optional[str] = None) -> Settings:
    """
    Get application settings based on environment.
    """
    load_dotenv()

    env = _norm_env_name(environment)
    project_root = _project_root()

    database = DatabaseConfig(db_path=_choose_db_path(env, project_root))

    backend = (os.getenv("STORE_BACKEND") or "sqlite").strip().lower()
    store = StoreConfig(
        backend=backend if backend in {"sqlite", "postgrest"} else "sqlite",
        url=os.getenv("STORE_URL"),
        service_key=os.getenv("STORE_SERVICE_KEY"),
        timeout=_int("STORE_TIMEOUT", 15),
    )

    email = EmailConfig(
        api_key=os.getenv("RESEND_API_KEY"),
        api_url=os.getenv("EMAIL_API_URL", "https://api.resend.com/emails"),
        sender=os.getenv("EMAIL_FROM", "PromoSync <notifications@promosync.io>"),
        timeout=_int("EMAIL_TIMEOUT", 10),
    )

    notifications = NotificationConfig(
        dashboard_url=os.getenv("DASHBOARD_URL", "https://promosync.io"),
        cron_secret=os.getenv("CRON_SECRET") or None,
    )

    web = WebConfig(
        secret_key=os.getenv("SECRET_KEY", "dev-secret-key-change-in-production"),
        debug=_bool("DEBUG", env == "dev"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int("PORT", 8000),
    )

    return Settings(
        environment=env,
        project_root=project_root,
        database=database,
        store=store,
        email=email,
        notifications=notifications,
        web=web,
    )
