from unittest.mock import Mock, NonCallableMock

import pytest
import requests

from appstore_earnings.exceptions import ConfigurationError, MappingFetchError
from appstore_earnings.sources.app_store import API_BASE_URL, AppStoreMappingSource


def page(data, next_url=None):
    response = NonCallableMock(spec=requests.Response)
    response.status_code = 200
    response.ok = True
    body = {"data": data}
    if next_url:
        body["links"] = {"next": next_url}
    response.json.return_value = body
    return response


def failure(status_code=403):
    response = NonCallableMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = False
    response.text = "forbidden"
    return response


class RoutedSession:
    """Fake session answering by URL path prefix."""

    def __init__(self, routes):
        self.routes = routes
        self.urls = []

    def get(self, url, headers=None, timeout=None):
        self.urls.append(url)
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                return response(url) if callable(response) else response
        raise AssertionError(f"Unexpected URL {url}")


def app(app_id, name):
    return {"id": app_id, "attributes": {"name": name, "bundleId": f"com.example.{app_id}"}}


def product(item_id, product_id, name):
    return {"id": item_id, "attributes": {"name": name, "productId": product_id}}


class TestBuildMapping:

    def test_full_mapping(self):
        session = RoutedSession({
            f"{API_BASE_URL}/apps?": page([app("1001", "App One"), app("1002", "App Two")]),
            f"{API_BASE_URL}/apps/1001/inAppPurchasesV2": page([product("9001", "gems_100", "100 Gems")]),
            f"{API_BASE_URL}/apps/1002/inAppPurchasesV2": page([]),
            f"{API_BASE_URL}/apps/1001/subscriptionGroups": page([]),
            f"{API_BASE_URL}/apps/1002/subscriptionGroups": page([{"id": "g1", "attributes": {}}]),
            f"{API_BASE_URL}/subscriptionGroups/g1/subscriptions": page([product("7001", "pro_monthly", "Pro")]),
        })
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        mapping = source.build_mapping()

        assert mapping["1001"].parent_app_id == "1001"
        assert mapping["1001"].is_add_on is False
        assert mapping["gems_100"].parent_app_name == "App One"
        assert mapping["gems_100"].is_add_on is True
        assert mapping["9001"] == mapping["gems_100"]
        assert mapping["pro_monthly"].parent_app_id == "1002"
        assert mapping["7001"].product_name == "Pro"
        assert len(mapping) == 6

    def test_follows_pagination(self):
        next_url = f"{API_BASE_URL}/apps?cursor=2"
        responses = iter([page([app("1", "One")], next_url=next_url), page([app("2", "Two")])])
        session = RoutedSession({
            f"{API_BASE_URL}/apps?": lambda url: next(responses),
            f"{API_BASE_URL}/apps/": page([]),
        })
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        assert source.fetch_apps() == {"1": "One", "2": "Two"}
        assert next_url in session.urls

    def test_sub_fetch_failure_is_skipped(self, caplog):
        session = RoutedSession({
            f"{API_BASE_URL}/apps?": page([app("1001", "App One")]),
            f"{API_BASE_URL}/apps/1001/inAppPurchasesV2": failure(),
            f"{API_BASE_URL}/apps/1001/subscriptionGroups": page([]),
        })
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        with caplog.at_level("WARNING"):
            mapping = source.build_mapping()

        assert list(mapping) == ["1001"]
        assert "in-app purchases for app 1001" in caplog.text

    def test_app_list_failure_is_fatal(self):
        session = RoutedSession({f"{API_BASE_URL}/apps?": failure(401)})
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        with pytest.raises(MappingFetchError, match="401"):
            source.build_mapping()

    def test_transport_error(self):
        session = Mock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("down")
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        with pytest.raises(MappingFetchError, match="down"):
            source.fetch_apps()

    def test_sends_bearer_token(self):
        session = Mock(spec=requests.Session)
        session.get.return_value = page([])
        AppStoreMappingSource(token="abc", session=session, timeout=3, show_progress=False).fetch_apps()

        kwargs = session.get.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer abc"
        assert kwargs["timeout"] == 3

    def test_subscription_group_without_id_skipped(self):
        session = RoutedSession({
            f"{API_BASE_URL}/apps?": page([app("1001", "App One")]),
            f"{API_BASE_URL}/apps/1001/inAppPurchasesV2": page([]),
            f"{API_BASE_URL}/apps/1001/subscriptionGroups": page([{"attributes": {"referenceName": "Pro"}}]),
        })
        source = AppStoreMappingSource(token="t", session=session, show_progress=False)

        assert list(source.build_mapping()) == ["1001"]
        assert not any("/subscriptionGroups/" in url for url in session.urls)

    def test_unsignable_token_is_fetch_error(self):
        def unreadable_key():
            raise ConfigurationError("Cannot read private key")

        session = Mock(spec=requests.Session)
        source = AppStoreMappingSource(token=unreadable_key, session=session, show_progress=False)

        with pytest.raises(MappingFetchError, match="Could not authenticate"):
            source.fetch_apps()
        session.get.assert_not_called()
