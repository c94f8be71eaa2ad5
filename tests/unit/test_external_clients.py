"""Unit tests for the stock quote and exchange rate clients."""

from decimal import Decimal

import httpx
import pytest

from ledgerly.core.exceptions import BusinessRuleError
from ledgerly.domain.services.forex_service import ForexService, balance_delta
from ledgerly.infrastructure.external_apis import ExchangeRateClient, StockPriceClient


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestStockPriceClient:
    """Tests for provider fallback and caching."""

    def test_finnhub_quote(self):
        """Test Finnhub is used when a key is configured."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "finnhub.io"
            assert request.url.params["symbol"] == "AAPL"
            return httpx.Response(
                200, json={"c": 190.5, "d": 1.5, "dp": 0.79, "h": 191, "l": 188, "o": 189, "pc": 189}
            )

        client = StockPriceClient(http_client=_http(handler), finnhub_key="key", alpha_vantage_key="")
        quote = client.get_quote("aapl")

        assert quote.ticker == "AAPL"
        assert quote.price == Decimal("190.5")
        assert quote.provider == "finnhub"

    def test_falls_back_to_yahoo(self):
        """Test Yahoo answers when Finnhub fails."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "finnhub.io":
                return httpx.Response(500)
            return httpx.Response(
                200,
                json={"chart": {"result": [{"meta": {"regularMarketPrice": 110, "previousClose": 100}}]}},
            )

        client = StockPriceClient(http_client=_http(handler), finnhub_key="key", alpha_vantage_key="")
        quote = client.get_quote("TEVA")

        assert quote.provider == "yahoo"
        assert quote.change == Decimal("10.00")
        assert quote.change_percent == Decimal("10.00")

    def test_all_providers_fail(self):
        """Test None is returned when nobody answers."""
        client = StockPriceClient(
            http_client=_http(lambda request: httpx.Response(503)),
            finnhub_key="",
            alpha_vantage_key="",
        )

        assert client.get_quote("NOPE") is None

    def test_quotes_are_cached(self):
        """Test the cache is used within its TTL."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url)
            return httpx.Response(200, json={"chart": {"result": [{"meta": {"regularMarketPrice": 50}}]}})

        clock = FakeClock()
        client = StockPriceClient(
            http_client=_http(handler), finnhub_key="", alpha_vantage_key="", cache_ttl=300, clock=clock
        )

        client.get_quote("MSFT")
        client.get_quote("msft")
        assert len(calls) == 1

        clock.now += 301
        client.get_quote("MSFT")
        assert len(calls) == 2

    def test_search_requires_finnhub(self):
        """Test symbol search is empty without a Finnhub key."""
        client = StockPriceClient(
            http_client=_http(lambda request: httpx.Response(500)), finnhub_key="", alpha_vantage_key=""
        )

        assert client.search_symbol("apple") == []
        assert client.provider_info()["primary_provider"] == "Yahoo Finance"


class TestExchangeRateClient:
    """Tests for rates, caching and the static fallback."""

    def test_latest_rates(self):
        """Test rates are parsed as Decimals."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/latest"
            return httpx.Response(200, json={"base": "USD", "date": "2024-06-03", "rates": {"ILS": 3.71}})

        client = ExchangeRateClient(http_client=_http(handler), base_url="https://rates.test")
        data = client.get_rates("usd")

        assert data == {"base": "USD", "date": "2024-06-03", "rates": {"ILS": Decimal("3.71")}}

    def test_stale_cache_served_on_failure(self):
        """Test the last good payload is served when the API fails."""
        responses = [
            httpx.Response(200, json={"base": "EUR", "date": "2024-06-03", "rates": {"USD": 1.08}}),
            httpx.Response(500),
        ]
        clock = FakeClock()
        client = ExchangeRateClient(
            http_client=_http(lambda request: responses.pop(0)),
            base_url="https://rates.test",
            cache_ttl=60,
            clock=clock,
        )

        first = client.get_rates("EUR")
        clock.now += 120
        second = client.get_rates("EUR")

        assert second == first

    def test_static_fallback(self):
        """Test static ILS-based rates without any cache."""
        client = ExchangeRateClient(
            http_client=_http(lambda request: httpx.Response(500)), base_url="https://rates.test"
        )

        data = client.get_rates("ILS")
        assert data["rates"]["USD"] == Decimal("0.27")

        usd = client.get_rates("USD")
        assert usd["rates"]["ILS"] == Decimal("1") / Decimal("0.27")

    def test_history_sorted(self):
        """Test daily rates come back oldest first."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"rates": {"2024-06-04": {"ILS": 3.72}, "2024-06-03": {"ILS": 3.71}}},
            )

        client = ExchangeRateClient(http_client=_http(handler), base_url="https://rates.test")
        history = client.get_history("USD", "ILS")

        assert [r["date"] for r in history["rates"]] == ["2024-06-03", "2024-06-04"]
        assert history["rates"][0]["rate"] == Decimal("3.71")

    def test_malformed_rate_falls_back(self):
        """Test an unparseable rate is treated like a failed fetch."""
        client = ExchangeRateClient(
            http_client=_http(
                lambda request: httpx.Response(
                    200, json={"base": "ILS", "date": "2024-06-03", "rates": {"USD": "n/a"}}
                )
            ),
            base_url="https://rates.test",
        )

        data = client.get_rates("ILS")

        assert data["rates"]["USD"] == Decimal("0.27")

    def test_malformed_history_rate_returns_empty(self):
        """Test an unparseable history entry yields an empty series."""
        client = ExchangeRateClient(
            http_client=_http(
                lambda request: httpx.Response(200, json={"rates": {"2024-06-03": {"ILS": "bad"}}})
            ),
            base_url="https://rates.test",
        )

        history = client.get_history("USD", "ILS")

        assert history["rates"] == []


class TestForexConversion:
    """Tests for ForexService.convert."""

    def _service(self, db_session, rates_by_base: dict) -> ForexService:
        def handler(request: httpx.Request) -> httpx.Response:
            base = request.url.params["from"]
            if base not in rates_by_base:
                return httpx.Response(404)
            return httpx.Response(200, json={"base": base, "date": "2024-06-03", "rates": rates_by_base[base]})

        client = ExchangeRateClient(http_client=_http(handler), base_url="https://rates.test")
        return ForexService(db_session, rate_client=client)

    def test_direct_rate(self, db_session):
        """Test conversion with the direct rate."""
        service = self._service(db_session, {"USD": {"ILS": 3.7}})

        result = service.convert(Decimal("100"), "usd", "ils")

        assert result["result"] == Decimal("370.00")
        assert result["rate"] == Decimal("3.7")

    def test_inverse_rate(self, db_session):
        """Test the reverse rate is inverted when the direct one is missing."""
        service = self._service(db_session, {"THB": {}, "ILS": {"THB": 10}})

        result = service.convert(Decimal("100"), "THB", "ILS")

        assert result["result"] == Decimal("10.00")

    def test_same_currency(self, db_session):
        """Test identical currencies convert at 1."""
        service = self._service(db_session, {})

        assert service.convert(Decimal("12.345"), "EUR", "EUR")["result"] == Decimal("12.35")

    def test_missing_rate(self, db_session):
        """Test an unknown pair is an error."""
        service = self._service(db_session, {"USD": {}, "XYZ": {}})

        with pytest.raises(BusinessRuleError):
            service.convert(Decimal("1"), "USD", "XYZ")

    def test_balance_delta(self):
        """Test SELL spends the source amount and others receive the target."""
        assert balance_delta("SELL", Decimal("100"), Decimal("370")) == Decimal("-100")
        assert balance_delta("BUY", Decimal("370"), Decimal("100")) == Decimal("100")
        assert balance_delta("TRANSFER", Decimal("50"), Decimal("50")) == Decimal("50")
