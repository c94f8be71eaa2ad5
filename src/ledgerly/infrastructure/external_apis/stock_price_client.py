"""Stock quote client with provider fallback (Finnhub -> Alpha Vantage -> Yahoo)."""

import time
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ledgerly.core.config import get_settings
from ledgerly.core.logging import get_logger
from ledgerly.core.money import round_money, to_decimal

logger = get_logger(__name__)

FINNHUB_URL = "https://finnhub.io/api/v1"
ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"


@dataclass
class Quote:
    """Daily quote for a ticker."""

    ticker: str
    price: Decimal
    change: Decimal
    change_percent: Decimal
    high: Decimal
    low: Decimal
    open: Decimal
    prev_close: Decimal
    provider: str

    def to_dict(self) -> dict:
        return asdict(self)


class StockPriceClient:
    """Fetch stock quotes, trying each configured provider in order.

    Finnhub and Alpha Vantage are used only when an API key is configured;
    Yahoo Finance needs no key and is always the last resort. Successful
    quotes are cached per ticker for `quote_cache_ttl_seconds`.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        finnhub_key: Optional[str] = None,
        alpha_vantage_key: Optional[str] = None,
        cache_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = get_settings()
        self.finnhub_key = settings.finnhub_api_key if finnhub_key is None else finnhub_key
        self.alpha_vantage_key = (
            settings.alpha_vantage_key if alpha_vantage_key is None else alpha_vantage_key
        )
        self.cache_ttl = settings.quote_cache_ttl_seconds if cache_ttl is None else cache_ttl
        self.client = http_client or httpx.Client(
            timeout=settings.http_timeout,
            headers={"User-Agent": "Mozilla/5.0"},
        )
        self._clock = clock
        # Cache: {TICKER: (fetched_at, Quote)}
        self._cache: dict[str, tuple[float, Quote]] = {}

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET a JSON document, retrying transient network failures."""
        response = self.client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def get_quote(self, ticker: str) -> Optional[Quote]:
        """Get a quote for a ticker from the first provider that answers.

        Returns:
            Quote, or None when every provider failed
        """
        symbol = ticker.upper().strip()

        cached = self._cache.get(symbol)
        if cached and self._clock() - cached[0] < self.cache_ttl:
            logger.debug("Using cached quote", ticker=symbol)
            return cached[1]

        providers: list[tuple[str, Callable[[str], Optional[Quote]]]] = []
        if self.finnhub_key:
            providers.append(("finnhub", self._fetch_finnhub))
        if self.alpha_vantage_key:
            providers.append(("alpha_vantage", self._fetch_alpha_vantage))
        providers.append(("yahoo", self._fetch_yahoo))

        for name, fetch in providers:
            try:
                quote = fetch(symbol)
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.debug("Quote provider failed", provider=name, ticker=symbol, error=str(e))
                quote = None
            if quote is not None:
                self._cache[symbol] = (self._clock(), quote)
                logger.info("Fetched quote", provider=name, ticker=symbol, price=float(quote.price))
                return quote

        logger.warning("Could not fetch quote from any provider", ticker=symbol)
        return None

    def search_symbol(self, query: str) -> list[dict[str, str]]:
        """Search ticker symbols (Finnhub only, up to 10 results)."""
        if not self.finnhub_key or not query:
            return []
        try:
            data = self._get_json(
                f"{FINNHUB_URL}/search", params={"q": query, "token": self.finnhub_key}
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Symbol search failed", query=query, error=str(e))
            return []

        return [
            {
                "symbol": r.get("symbol", ""),
                "description": r.get("description", ""),
                "type": r.get("type", ""),
            }
            for r in (data.get("result") or [])[:10]
        ]

    def provider_info(self) -> dict[str, Any]:
        """Describe which quote providers are configured."""
        if self.finnhub_key:
            primary = "Finnhub"
        elif self.alpha_vantage_key:
            primary = "Alpha Vantage"
        else:
            primary = "Yahoo Finance"
        return {
            "providers": [
                {
                    "name": "Finnhub",
                    "url": "https://finnhub.io",
                    "configured": bool(self.finnhub_key),
                    "description": "Real-time stock data (free: 60 calls/min)",
                },
                {
                    "name": "Alpha Vantage",
                    "url": "https://www.alphavantage.co",
                    "configured": bool(self.alpha_vantage_key),
                    "description": "Stock data and fundamentals (free: 25 calls/day)",
                },
                {
                    "name": "Yahoo Finance",
                    "url": "https://finance.yahoo.com",
                    "configured": True,
                    "description": "Fallback provider (no API key required, may be rate limited)",
                },
            ],
            "primary_provider": primary,
        }

    # Providers

    def _fetch_finnhub(self, ticker: str) -> Optional[Quote]:
        data = self._get_json(
            f"{FINNHUB_URL}/quote", params={"symbol": ticker, "token": self.finnhub_key}
        )
        if not data or not data.get("c"):
            return None
        return Quote(
            ticker=ticker,
            price=to_decimal(data["c"]),
            change=to_decimal(data.get("d")),
            change_percent=to_decimal(data.get("dp")),
            high=to_decimal(data.get("h")),
            low=to_decimal(data.get("l")),
            open=to_decimal(data.get("o")),
            prev_close=to_decimal(data.get("pc")),
            provider="finnhub",
        )

    def _fetch_alpha_vantage(self, ticker: str) -> Optional[Quote]:
        data = self._get_json(
            ALPHA_VANTAGE_URL,
            params={"function": "GLOBAL_QUOTE", "symbol": ticker, "apikey": self.alpha_vantage_key},
        )
        gq = (data or {}).get("Global Quote") or {}
        price = to_decimal(gq.get("05. price"))
        if price <= 0:
            return None
        return Quote(
            ticker=ticker,
            price=price,
            change=to_decimal(gq.get("09. change")),
            change_percent=to_decimal((gq.get("10. change percent") or "0").replace("%", "")),
            high=to_decimal(gq.get("03. high")),
            low=to_decimal(gq.get("04. low")),
            open=to_decimal(gq.get("02. open")),
            prev_close=to_decimal(gq.get("08. previous close")),
            provider="alpha_vantage",
        )

    def _fetch_yahoo(self, ticker: str) -> Optional[Quote]:
        data = self._get_json(
            f"{YAHOO_CHART_URL}/{ticker}", params={"interval": "1d", "range": "1d"}
        )
        results = ((data or {}).get("chart") or {}).get("result") or []
        meta = results[0].get("meta") if results else None
        if not meta or not meta.get("regularMarketPrice") or meta["regularMarketPrice"] <= 0:
            return None

        price = to_decimal(meta["regularMarketPrice"])
        prev_close = to_decimal(meta.get("previousClose", meta["regularMarketPrice"]))
        change_percent = round_money((price - prev_close) / prev_close * 100) if prev_close > 0 else Decimal("0")
        return Quote(
            ticker=ticker,
            price=price,
            change=round_money(price - prev_close),
            change_percent=change_percent,
            high=to_decimal(meta.get("regularMarketDayHigh", meta["regularMarketPrice"])),
            low=to_decimal(meta.get("regularMarketDayLow", meta["regularMarketPrice"])),
            open=to_decimal(meta.get("regularMarketOpen", meta["regularMarketPrice"])),
            prev_close=prev_close,
            provider="yahoo",
        )
