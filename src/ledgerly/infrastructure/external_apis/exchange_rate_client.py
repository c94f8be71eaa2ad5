"""Exchange-rate client for the Frankfurter API (ECB reference rates)."""

import time
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ledgerly.core.config import get_settings
from ledgerly.core.logging import get_logger

logger = get_logger(__name__)

# Approximate ILS-based rates used when the API and cache are both unavailable
FALLBACK_ILS_RATES: dict[str, Decimal] = {
    "USD": Decimal("0.27"), "EUR": Decimal("0.25"), "GBP": Decimal("0.22"), "JPY": Decimal("40.5"),
    "CHF": Decimal("0.24"), "CAD": Decimal("0.37"), "AUD": Decimal("0.42"), "CNY": Decimal("1.96"),
    "THB": Decimal("9.5"), "SEK": Decimal("2.82"), "NOK": Decimal("2.87"), "DKK": Decimal("1.86"),
    "PLN": Decimal("1.08"), "CZK": Decimal("6.27"), "HUF": Decimal("99.0"), "TRY": Decimal("8.7"),
    "ZAR": Decimal("4.9"), "BRL": Decimal("1.35"), "MXN": Decimal("4.65"), "SGD": Decimal("0.36"),
    "HKD": Decimal("2.11"), "KRW": Decimal("371.0"), "INR": Decimal("22.7"), "RUB": Decimal("25.0"),
}

FALLBACK_CURRENCIES: dict[str, str] = {
    "ILS": "Israeli New Shekel",
    "USD": "United States Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "JPY": "Japanese Yen",
    "CHF": "Swiss Franc",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
    "CNY": "Chinese Yuan",
    "THB": "Thai Baht",
}


class ExchangeRateClient:
    """Client for Frankfurter latest/historical rates.

    API Documentation:
    https://www.frankfurter.app/docs/

    Latest rates are cached per base currency. When the API fails the last
    cached value is served, and without a cache a static ILS-based table.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        cache_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.exchange_rates_url).rstrip("/")
        self.cache_ttl = settings.exchange_rates_cache_ttl_seconds if cache_ttl is None else cache_ttl
        self.client = http_client or httpx.Client(timeout=settings.http_timeout)
        self._clock = clock
        # Cache: {BASE: (fetched_at, payload)}
        self._cache: dict[str, tuple[float, dict[str, Any]]] = {}

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        response = self.client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        return response.json()

    def get_rates(self, base: str = "ILS") -> dict[str, Any]:
        """Get latest rates for a base currency.

        Returns:
            {"base": str, "date": "YYYY-MM-DD", "rates": {CUR: Decimal}}
        """
        base = base.upper()
        cached = self._cache.get(base)
        if cached and self._clock() - cached[0] < self.cache_ttl:
            return cached[1]

        try:
            data = self._get_json("/latest", params={"from": base})
            payload = {
                "base": data["base"],
                "date": data["date"],
                "rates": {cur: Decimal(str(rate)) for cur, rate in data["rates"].items()},
            }
            self._cache[base] = (self._clock(), payload)
            logger.info("Fetched exchange rates", base=base, count=len(payload["rates"]))
            return payload
        except (httpx.HTTPError, ValueError, KeyError, ArithmeticError) as e:
            logger.warning("Failed to fetch exchange rates", base=base, error=str(e))
            if cached:
                return cached[1]
            return {
                "base": base,
                "date": date.today().isoformat(),
                "rates": self.fallback_rates(base),
            }

    def get_history(
        self,
        from_currency: str,
        to_currency: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Get daily rates for a currency pair (default: last 90 days)."""
        end = end_date or date.today()
        start = start_date or end - timedelta(days=90)
        from_currency, to_currency = from_currency.upper(), to_currency.upper()

        try:
            data = self._get_json(
                f"/{start.isoformat()}..{end.isoformat()}",
                params={"from": from_currency, "to": to_currency},
            )
            rates = [
                {"date": day, "rate": Decimal(str(values[to_currency]))}
                for day, values in (data.get("rates") or {}).items()
                if values.get(to_currency) is not None
            ]
        except (httpx.HTTPError, ValueError, ArithmeticError) as e:
            logger.warning(
                "Failed to fetch rate history",
                from_currency=from_currency,
                to_currency=to_currency,
                error=str(e),
            )
            return {"base": from_currency, "target": to_currency, "rates": []}

        rates.sort(key=lambda r: r["date"])
        return {"base": from_currency, "target": to_currency, "rates": rates}

    def get_currencies(self) -> dict[str, str]:
        """Supported currency codes and names."""
        try:
            return self._get_json("/currencies")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch currencies", error=str(e))
            return dict(FALLBACK_CURRENCIES)

    @staticmethod
    def fallback_rates(base: str) -> dict[str, Decimal]:
        """Static rates derived from the ILS table."""
        if base == "ILS":
            return dict(FALLBACK_ILS_RATES)
        base_in_ils = FALLBACK_ILS_RATES.get(base)
        if not base_in_ils:
            return {}
        rates = {"ILS": Decimal("1") / base_in_ils}
        for cur, rate in FALLBACK_ILS_RATES.items():
            if cur != base:
                rates[cur] = rate / base_in_ils
        return rates
