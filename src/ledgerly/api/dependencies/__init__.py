"""API dependencies."""

from ledgerly.api.dependencies.auth import get_current_active_user
from ledgerly.api.dependencies.clients import get_exchange_rate_client, get_stock_price_client
from ledgerly.api.dependencies.database import get_db

__all__ = ["get_db", "get_current_active_user", "get_stock_price_client", "get_exchange_rate_client"]
