"""Shared external API clients.

One instance per process so the quote and rate caches survive across requests.
"""

from functools import lru_cache

from ledgerly.infrastructure.external_apis import ExchangeRateClient, StockPriceClient


@lru_cache
def get_stock_price_client() -> StockPriceClient:
    return StockPriceClient()


@lru_cache
def get_exchange_rate_client() -> ExchangeRateClient:
    return ExchangeRateClient()
