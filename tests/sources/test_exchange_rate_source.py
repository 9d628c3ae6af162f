from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests

from appstore_earnings.exceptions import RateLookupError
from appstore_earnings.sources.exchange_rates import FRANKFURTER_API_URL, FrankfurterRateSource


def make_response(status_code=200, body=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Bad Request"
    response.json.return_value = body if body is not None else {}
    return response


class TestFrankfurterRateSource:

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.source = FrankfurterRateSource(session=self.session, timeout=5)

    def test_latest_rate(self):
        self.session.get.return_value = make_response(body={"amount": 1.0, "base": "EUR", "rates": {"USD": 1.0842}})

        assert self.source.get_rate("EUR", "USD") == 1.0842

        args, kwargs = self.session.get.call_args
        assert args[0] == f"{FRANKFURTER_API_URL}/latest"
        assert kwargs["params"] == {"from": "EUR", "to": "USD"}
        assert kwargs["timeout"] == 5

    def test_historical_rate(self):
        self.session.get.return_value = make_response(body={"rates": {"USD": 1.1}})

        self.source.get_rate("EUR", "USD", on_date=date(2025, 9, 30))

        assert self.session.get.call_args[0][0] == f"{FRANKFURTER_API_URL}/2025-09-30"

    def test_same_currency_needs_no_request(self):
        assert self.source.get_rate("USD", "USD") == 1.0
        self.session.get.assert_not_called()

    def test_missing_rate(self):
        self.session.get.return_value = make_response(body={"rates": {}})
        with pytest.raises(RateLookupError, match="No exchange rate found for XYZ"):
            self.source.get_rate("XYZ", "USD")

    def test_http_error(self):
        self.session.get.return_value = make_response(status_code=404)
        with pytest.raises(RateLookupError, match="404"):
            self.source.get_rate("EUR", "USD")

    def test_transport_error(self):
        self.session.get.side_effect = requests.Timeout("timed out")
        with pytest.raises(RateLookupError, match="timed out"):
            self.source.get_rate("EUR", "USD")

    def test_custom_base_url_trailing_slash(self):
        source = FrankfurterRateSource(base_url="https://rates.example/", session=self.session)
        self.session.get.return_value = make_response(body={"rates": {"USD": 2.0}})

        source.get_rate("GBP", "USD")

        assert self.session.get.call_args[0][0] == "https://rates.example/latest"

    def test_default_session_is_requests_session(self):
        with patch("requests.Session.get") as mock_get:
            mock_get.return_value = make_response(body={"rates": {"USD": 0.5}})
            assert FrankfurterRateSource().get_rate("AUD", "USD") == 0.5
