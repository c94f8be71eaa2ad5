"""External API clients."""

from ledgerly.infrastructure.external_apis.exchange_rate_client import ExchangeRateClient
from ledgerly.infrastructure.external_apis.stock_price_client import Quote, StockPriceClient

__all__ = ["ExchangeRateClient", "StockPriceClient", "Quote"]
