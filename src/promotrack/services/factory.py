"""
Service factory functions.

``initialize_services`` registers the record store, the email dispatcher and
every core service in the process-wide container, each built lazily from the
application settings.
"""

import logging
from typing import Optional

from ..config.settings import Settings, get_settings
from .container import ServiceContainer, ServiceCreationError, get_container

logger = logging.getLogger(__name__)


def create_database_connection(settings: Settings):
    from ..database.connection import DatabaseConnection

    logger.info(f"Creating database connection to: {settings.database.db_path}")
    return DatabaseConnection(settings.database.db_path)


def create_record_store(container: ServiceContainer, settings: Settings):
    """SQLite store by default; the hosted REST store when STORE_BACKEND=postgrest."""
    if settings.store.backend == "postgrest":
        from ..repositories.postgrest_store import PostgrestRecordStore

        if not settings.store.url or not settings.store.service_key:
            raise ServiceCreationError("STORE_URL and STORE_SERVICE_KEY are required for the postgrest backend")
        logger.info(f"Using hosted record store at {settings.store.url}")
        return PostgrestRecordStore(
            settings.store.url, settings.store.service_key, timeout=settings.store.timeout
        )

    from ..database.schema import initialize_schema
    from ..repositories.sqlite_store import SQLiteRecordStore

    db = container.get("database_connection")
    initialize_schema(db)
    return SQLiteRecordStore(db)


def create_dispatcher(settings: Settings):
    from .notification_dispatcher import ResendDispatcher

    if not settings.email.api_key:
        logger.warning("RESEND_API_KEY is not set; emails will be logged as failed")
    return ResendDispatcher(
        settings.email.api_key,
        settings.email.sender,
        api_url=settings.email.api_url,
        timeout=settings.email.timeout,
    )


def register_core_services(container: ServiceContainer) -> None:
    """Register every core service against already-registered infrastructure."""
    from .account_service import AccountService
    from .activity_log_service import ActivityLogService
    from .assignment_service import AssignmentService
    from .dashboard_service import DashboardService
    from .directory_service import PromoService, RepService
    from .notes_service import NotesService
    from .notification_service import NotificationService
    from .quarter_service import QuarterService
    from .rollover_service import QuarterRolloverService
    from .transaction_service import TransactionService

    get = container.get

    container.register_singleton("activity_log_service", lambda: ActivityLogService(get("record_store")))
    container.register_singleton("rep_service", lambda: RepService(get("record_store")))
    container.register_singleton("promo_service", lambda: PromoService(get("record_store")))
    container.register_singleton("quarter_service", lambda: QuarterService(get("record_store")))
    container.register_singleton(
        "account_service",
        lambda: AccountService(get("record_store"), get("activity_log_service")),
    )
    container.register_singleton(
        "notification_service",
        lambda: NotificationService(
            get("record_store"),
            get("dispatcher"),
            get("rep_service"),
            get("account_service"),
            get("promo_service"),
            get("quarter_service"),
            dashboard_url=container.get_config("DASHBOARD_URL", "https://promosync.io"),
        ),
    )
    container.register_singleton(
        "assignment_service",
        lambda: AssignmentService(
            get("record_store"),
            get("account_service"),
            get("promo_service"),
            get("activity_log_service"),
            notifier=get("notification_service"),
        ),
    )
    container.register_singleton(
        "transaction_service",
        lambda: TransactionService(get("record_store"), get("promo_service"), get("activity_log_service")),
    )
    container.register_singleton(
        "notes_service",
        lambda: NotesService(get("record_store"), get("rep_service"), get("activity_log_service")),
    )
    container.register_singleton(
        "dashboard_service",
        lambda: DashboardService(
            get("record_store"),
            get("account_service"),
            get("promo_service"),
            get("rep_service"),
            get("quarter_service"),
        ),
    )
    # Rollover holds per-run state, so every lookup starts a fresh controller.
    container.register_factory(
        "rollover_service",
        lambda: QuarterRolloverService(get("record_store"), get("quarter_service")),
    )


def initialize_services(
    settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None
) -> ServiceContainer:
    """Register infrastructure and services for ``settings`` and return the container."""
    settings = settings or get_settings()
    container = container or get_container()

    container.set_config({
        "ENVIRONMENT": settings.environment,
        "DB_PATH": settings.database.db_path,
        "STORE_BACKEND": settings.store.backend,
        "DASHBOARD_URL": settings.notifications.dashboard_url,
        "CRON_SECRET": settings.notifications.cron_secret,
    })

    container.register_singleton("settings", lambda: settings)
    container.register_singleton("database_connection", lambda: create_database_connection(settings))
    container.register_singleton("record_store", lambda: create_record_store(container, settings))
    container.register_singleton("dispatcher", lambda: create_dispatcher(settings))
    register_core_services(container)

    logger.info(
        f"Services initialized for {settings.environment} "
        f"(store: {settings.store.backend}, {len(container.list_services())} registered)"
    )
    return container
