import pytest

from promotrack.services.container import (
    ServiceContainer,
    ServiceCreationError,
    ServiceNotFoundError,
    get_container,
    reset_container,
)
from promotrack.services.factory import initialize_services


class TestServiceContainer:
    """Test the ServiceContainer class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.container = ServiceContainer()

    def test_register_and_get_singleton(self):
        """Test singleton service registration and retrieval."""

        def mock_factory():
            return object()

        self.container.register_singleton("test_service", mock_factory)
        result1 = self.container.get("test_service")
        result2 = self.container.get("test_service")

        assert result1 is result2

    def test_register_and_get_factory(self):
        """Test factory service registration and retrieval."""
        call_count = 0

        def mock_factory():
            nonlocal call_count
            call_count += 1
            return f"mock_service_{call_count}"

        self.container.register_factory("test_service", mock_factory)

        assert self.container.get("test_service") == "mock_service_1"
        assert self.container.get("test_service") == "mock_service_2"

    def test_instance_overrides_singleton(self):
        """Registered instances win over lazily-built singletons."""
        self.container.register_singleton("store", lambda: "real")
        self.container.register_instance("store", "double")
        assert self.container.get("store") == "double"

    def test_service_not_found(self):
        """Test ServiceNotFoundError for unregistered services."""
        with pytest.raises(ServiceNotFoundError):
            self.container.get("nonexistent_service")

    def test_creation_failure_wrapped(self):
        def broken():
            raise RuntimeError("no database")

        self.container.register_singleton("broken", broken)
        with pytest.raises(ServiceCreationError, match="no database"):
            self.container.get("broken")

    def test_config_management(self):
        """Test configuration setting and retrieval."""
        self.container.set_config({"DASHBOARD_URL": "https://example.com", "PORT": 8000})

        assert self.container.get_config("DASHBOARD_URL") == "https://example.com"
        assert self.container.get_config("PORT") == 8000
        assert self.container.get_config("missing_key") is None
        assert self.container.get_config("missing_key", "default") == "default"

    def test_has_service_and_listing(self):
        assert not self.container.has_service("a")

        self.container.register_singleton("a", lambda: 1)
        self.container.register_factory("b", lambda: 2)
        self.container.register_instance("c", 3)

        assert self.container.has_service("a")
        assert self.container.list_services() == {"a": "singleton", "b": "factory", "c": "instance"}

    def test_clear_singletons_rebuilds(self):
        self.container.register_singleton("svc", object)
        first = self.container.get("svc")
        self.container.clear_singletons()
        assert self.container.get("svc") is not first


class TestGlobalContainer:

    def teardown_method(self):
        reset_container()

    def test_get_container_is_shared(self):
        assert get_container() is get_container()

    def test_reset_container(self):
        first = get_container()
        reset_container()
        assert get_container() is not first


class TestInitializeServices:

    EXPECTED = [
        "account_service",
        "activity_log_service",
        "assignment_service",
        "dashboard_service",
        "notes_service",
        "notification_service",
        "promo_service",
        "quarter_service",
        "rep_service",
        "rollover_service",
        "transaction_service",
    ]

    def test_registers_core_services(self, settings):
        container = initialize_services(settings, container=ServiceContainer())
        for name in self.EXPECTED:
            assert container.has_service(name), name

    def test_builds_against_sqlite(self, settings):
        container = initialize_services(settings, container=ServiceContainer())
        assert container.get("quarter_service").get_active_quarter() is None
        assert container.get_config("STORE_BACKEND") == "sqlite"

    def test_rollover_is_per_lookup(self, container):
        assert container.get("rollover_service") is not container.get("rollover_service")
        assert container.get("assignment_service") is container.get("assignment_service")

    def test_postgrest_requires_credentials(self, settings, monkeypatch):
        from promotrack.config.settings import get_settings

        monkeypatch.setenv("STORE_BACKEND", "postgrest")
        monkeypatch.delenv("STORE_URL", raising=False)
        container = initialize_services(get_settings("test"), container=ServiceContainer())
        with pytest.raises(ServiceCreationError):
            container.get("record_store")
