import pytest

from appstore_earnings.config.settings import get_settings
from appstore_earnings.services.container import (
    ServiceContainer,
    ServiceCreationError,
    ServiceNotFoundError,
    get_container,
    reset_container,
)
from appstore_earnings.services.earnings_service import EarningsService
from appstore_earnings.services.factory import initialize_services
from appstore_earnings.sources.auth import AppStoreTokenProvider
from appstore_earnings.sources.exchange_rates import FrankfurterRateSource


class TestServiceContainer:

    def setup_method(self):
        self.container = ServiceContainer()

    def test_singleton_built_once(self):
        built = []
        self.container.register_singleton("report_cache", lambda: built.append(1) or object())

        assert self.container.get("report_cache") is self.container.get("report_cache")
        assert len(built) == 1

    def test_unknown_service(self):
        with pytest.raises(ServiceNotFoundError):
            self.container.get("earnings_service")

    def test_creation_failure_wrapped(self):
        def broken():
            raise RuntimeError("no credentials")

        self.container.register_singleton("report_source", broken)

        with pytest.raises(ServiceCreationError, match="no credentials"):
            self.container.get("report_source")

    def test_clear_singletons_rebuilds_but_keeps_instances(self):
        settings = object()
        self.container.register_instance("settings", settings)
        self.container.register_singleton("converter", lambda: object())
        first = self.container.get("converter")

        self.container.clear_singletons()

        assert self.container.get("converter") is not first
        assert self.container.get("settings") is settings
        assert self.container.list_services() == {"converter": "singleton", "settings": "instance"}


def test_global_container_shared_until_reset():
    first = get_container()
    assert get_container() is first
    reset_container()
    assert get_container() is not first


class TestInitializeServices:

    def settings(self, tmp_path, **extra):
        environ = {"ASC_VENDOR_NUMBER": "1", "ASC_API_TOKEN": "t", "ASC_CACHE_DIR": str(tmp_path)}
        environ.update(extra)
        return get_settings(environ=environ, dotenv_path=tmp_path / ".env", config_path=tmp_path / "c.json")

    def test_wires_earnings_service(self, tmp_path):
        container = initialize_services(self.settings(tmp_path, ASC_TARGET_CURRENCY="eur"))

        service = container.get("earnings_service")

        assert isinstance(service, EarningsService)
        assert service.target_currency == "EUR"
        assert isinstance(container.get("rate_source"), FrankfurterRateSource)
        assert container.get("report_source").vendor_number == "1"

    def test_signing_key_used_without_static_token(self, tmp_path):
        settings = self.settings(tmp_path, ASC_API_TOKEN="", ASC_ISSUER_ID="issuer",
                                 ASC_KEY_ID="KEY1", ASC_PRIVATE_KEY_PATH=str(tmp_path / "AuthKey.p8"))

        source = initialize_services(settings).get("report_source")

        assert isinstance(source._token, AppStoreTokenProvider)
        assert source._token.key_id == "KEY1"

    def test_mapping_disabled_without_app_manager(self, tmp_path):
        container = initialize_services(self.settings(tmp_path))

        assert container.get("mapping_source") is None
        assert container.get("product_mapping_service").is_configured is False

    def test_mapping_enabled_with_app_manager_key(self, tmp_path):
        container = initialize_services(self.settings(
            tmp_path,
            ASC_APP_MANAGER_ISSUER_ID="i", ASC_APP_MANAGER_KEY_ID="k",
            ASC_APP_MANAGER_PRIVATE_KEY_PATH="/p8",
        ))

        assert container.get("product_mapping_service").is_configured is True
        assert isinstance(container.get("mapping_source")._token, AppStoreTokenProvider)

    def test_reinitialize_uses_new_settings(self, tmp_path):
        initialize_services(self.settings(tmp_path, ASC_TARGET_CURRENCY="EUR")).get("earnings_service")
        container = initialize_services(self.settings(tmp_path, ASC_TARGET_CURRENCY="GBP"))

        assert container.get("earnings_service").target_currency == "GBP"
