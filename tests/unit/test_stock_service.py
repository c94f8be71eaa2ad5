"""Unit tests for stock portfolio valuation and price refresh."""

from decimal import Decimal
from typing import Optional

import pytest

from ledgerly.core.exceptions import NotFoundError
from ledgerly.domain.services.stock_service import StockService, holding_values, totals
from ledgerly.infrastructure.database.finance import StockHolding
from ledgerly.infrastructure.external_apis.stock_price_client import Quote


class FakePriceClient:
    """Quote provider returning fixed prices; unknown tickers have no quote."""

    def __init__(self, prices: dict) -> None:
        self.prices = prices
        self.requested: list[str] = []

    def get_quote(self, ticker: str) -> Optional[Quote]:
        self.requested.append(ticker)
        price = self.prices.get(ticker)
        if price is None:
            return None
        price = Decimal(price)
        return Quote(
            ticker=ticker,
            price=price,
            change=Decimal("0"),
            change_percent=Decimal("0"),
            high=price,
            low=price,
            open=price,
            prev_close=price,
            provider="fake",
        )


@pytest.fixture
def portfolio(db_session, business):
    """Portfolio holding AAPL (priced) and MSFT (never priced)."""
    service = StockService(db_session)
    created = service.create_portfolio(business.id, {"name": "Long term", "currency": "USD"})
    service.add_holding(
        business.id,
        created.id,
        {
            "ticker": " aapl ",
            "name": "Apple",
            "shares": Decimal("10"),
            "avg_buy_price": Decimal("100"),
            "current_price": Decimal("120"),
        },
    )
    service.add_holding(
        business.id,
        created.id,
        {"ticker": "MSFT", "name": "Microsoft", "shares": Decimal("5"), "avg_buy_price": Decimal("200")},
    )
    return created


class TestHoldingValues:
    """Tests for holding and portfolio math."""

    def test_current_price_used(self):
        """Test market value uses the last quote."""
        holding = StockHolding(
            ticker="AAPL", name="Apple", shares=Decimal("10"),
            avg_buy_price=Decimal("100"), current_price=Decimal("120"),
        )

        values = holding_values(holding)

        assert values["market_value"] == Decimal("1200.00")
        assert values["cost_basis"] == Decimal("1000.00")
        assert values["gain"] == Decimal("200.00")
        assert values["gain_percent"] == Decimal("20.00")

    def test_falls_back_to_buy_price(self):
        """Test an unpriced holding is valued at cost."""
        holding = StockHolding(ticker="MSFT", name="Microsoft", shares=Decimal("5"), avg_buy_price=Decimal("200"))

        values = holding_values(holding)

        assert values["market_value"] == Decimal("1000.00")
        assert values["gain"] == Decimal("0.00")

    def test_zero_cost_has_zero_percent(self):
        """Test gain percent is 0 when nothing was paid."""
        holding = StockHolding(
            ticker="GIFT", name="Granted", shares=Decimal("3"),
            avg_buy_price=Decimal("0"), current_price=Decimal("10"),
        )

        values = holding_values(holding)

        assert values["gain"] == Decimal("30.00")
        assert values["gain_percent"] == Decimal("0.00")

    def test_totals(self):
        """Test totals recompute the percent from the summed cost."""
        combined = totals(
            [
                {"market_value": Decimal("1200"), "cost_basis": Decimal("1000")},
                {"market_value": Decimal("900"), "cost_basis": Decimal("1000")},
            ]
        )

        assert combined["market_value"] == Decimal("2100.00")
        assert combined["gain"] == Decimal("100.00")
        assert combined["gain_percent"] == Decimal("5.00")


class TestStockService:
    """Tests for portfolios, holdings and refresh."""

    def test_ticker_normalized(self, db_session, business, portfolio):
        """Test tickers are stripped and upper-cased."""
        view = StockService(db_session).portfolio_view(portfolio)

        assert [h["holding"].ticker for h in view["holdings"]] == ["AAPL", "MSFT"]

    def test_refresh_keeps_price_without_quote(self, db_session, business, portfolio):
        """Test a missing quote is counted as failed and keeps the old price."""
        client = FakePriceClient({"AAPL": "150"})
        service = StockService(db_session, price_client=client)

        result = service.refresh_prices(business.id, portfolio.id)

        assert result["updated"] == 1
        assert result["failed"] == 1
        assert sorted(client.requested) == ["AAPL", "MSFT"]
        prices = {h["holding"].ticker: h["holding"].current_price for h in result["holdings"]}
        assert prices["AAPL"] == Decimal("150")
        assert prices["MSFT"] is None
        aapl = next(h["holding"] for h in result["holdings"] if h["holding"].ticker == "AAPL")
        assert aapl.price_updated_at is not None

    def test_deleted_holding_not_refreshed(self, db_session, business, portfolio):
        """Test soft-deleted holdings are skipped."""
        service = StockService(db_session, price_client=FakePriceClient({"AAPL": "150", "MSFT": "300"}))
        holdings = service.portfolio_view(portfolio)["holdings"]
        msft = next(h["holding"] for h in holdings if h["holding"].ticker == "MSFT")
        service.delete_holding(business.id, portfolio.id, msft.id)

        result = service.refresh_prices(business.id, portfolio.id)

        assert result["updated"] == 1
        assert result["failed"] == 0

    def test_summary(self, db_session, business, portfolio):
        """Test summary totals and per-portfolio rows."""
        data = StockService(db_session).summary(business.id)

        assert data["portfolio_count"] == 1
        assert data["holding_count"] == 2
        assert data["total_value"] == Decimal("2200.00")
        assert data["total_cost"] == Decimal("2000.00")
        assert data["total_gain"] == Decimal("200.00")
        assert data["total_gain_percent"] == Decimal("10.00")
        assert data["portfolios"][0]["name"] == "Long term"
        assert data["portfolios"][0]["holding_count"] == 2

    def test_other_business_portfolio(self, db_session, portfolio, other_user):
        """Test portfolios are scoped to their business."""
        with pytest.raises(NotFoundError):
            StockService(db_session).refresh_prices(other_user.business_id, portfolio.id)
