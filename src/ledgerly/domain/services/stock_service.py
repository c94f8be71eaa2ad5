"""Stock portfolios, holdings and price refresh."""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.date_helpers import utc_now
from ledgerly.core.exceptions import NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.infrastructure.database.finance import StockHolding, StockPortfolio
from ledgerly.infrastructure.external_apis import StockPriceClient

logger = get_logger(__name__)


def holding_values(holding: StockHolding) -> dict[str, Decimal]:
    """
    Market value, cost basis and gain of a holding.

    Market value uses the last known price, falling back to the average buy
    price when no quote was fetched yet.
    """
    shares = to_decimal(holding.shares)
    avg_price = to_decimal(holding.avg_buy_price)
    price = to_decimal(holding.current_price) if holding.current_price is not None else avg_price

    market_value = shares * price
    cost_basis = shares * avg_price
    gain = market_value - cost_basis
    return {
        "market_value": round_money(market_value),
        "cost_basis": round_money(cost_basis),
        "gain": round_money(gain),
        "gain_percent": round_money(gain / cost_basis * 100) if cost_basis > 0 else Decimal("0.00"),
    }


def totals(values: list[dict[str, Decimal]]) -> dict[str, Decimal]:
    market_value = sum((v["market_value"] for v in values), ZERO)
    cost_basis = sum((v["cost_basis"] for v in values), ZERO)
    gain = market_value - cost_basis
    return {
        "market_value": round_money(market_value),
        "cost_basis": round_money(cost_basis),
        "gain": round_money(gain),
        "gain_percent": round_money(gain / cost_basis * 100) if cost_basis > 0 else Decimal("0.00"),
    }


class StockService:
    """Service for stock portfolios and their holdings."""

    def __init__(self, db: Session, price_client: Optional[StockPriceClient] = None):
        self.db = db
        self._price_client = price_client

    @property
    def price_client(self) -> StockPriceClient:
        if self._price_client is None:
            self._price_client = StockPriceClient()
        return self._price_client

    # ------------------------------------------------------------------
    # Portfolios
    # ------------------------------------------------------------------

    def _active_holdings(self, portfolio_id: str) -> list[StockHolding]:
        return list(
            self.db.execute(
                select(StockHolding)
                .where(StockHolding.portfolio_id == portfolio_id, StockHolding.is_active.is_(True))
                .order_by(StockHolding.ticker)
            ).scalars().all()
        )

    def portfolio_view(self, portfolio: StockPortfolio) -> dict[str, Any]:
        """Portfolio with active holdings and computed values."""
        holdings = [{"holding": h, **holding_values(h)} for h in self._active_holdings(portfolio.id)]
        return {"portfolio": portfolio, "holdings": holdings, **totals(holdings)}

    def list_portfolios(self, business_id: str) -> list[dict[str, Any]]:
        portfolios = self.db.execute(
            select(StockPortfolio)
            .where(StockPortfolio.business_id == business_id, StockPortfolio.is_active.is_(True))
            .order_by(StockPortfolio.name)
        ).scalars().all()
        return [self.portfolio_view(p) for p in portfolios]

    def get_portfolio(self, business_id: str, portfolio_id: str) -> StockPortfolio:
        portfolio = self.db.execute(
            select(StockPortfolio).where(
                StockPortfolio.id == portfolio_id,
                StockPortfolio.business_id == business_id,
            )
        ).scalar_one_or_none()
        if not portfolio:
            raise NotFoundError("Portfolio not found")
        return portfolio

    def create_portfolio(self, business_id: str, data: dict[str, Any]) -> StockPortfolio:
        portfolio = StockPortfolio(business_id=business_id, **data)
        self.db.add(portfolio)
        self.db.commit()
        self.db.refresh(portfolio)
        return portfolio

    def update_portfolio(self, business_id: str, portfolio_id: str, data: dict[str, Any]) -> StockPortfolio:
        portfolio = self.get_portfolio(business_id, portfolio_id)
        for field, value in data.items():
            setattr(portfolio, field, value)
        self.db.commit()
        self.db.refresh(portfolio)
        return portfolio

    def delete_portfolio(self, business_id: str, portfolio_id: str) -> None:
        portfolio = self.get_portfolio(business_id, portfolio_id)
        portfolio.is_active = False
        self.db.commit()

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def get_holding(self, business_id: str, portfolio_id: str, holding_id: str) -> StockHolding:
        portfolio = self.get_portfolio(business_id, portfolio_id)
        holding = self.db.execute(
            select(StockHolding).where(StockHolding.id == holding_id, StockHolding.portfolio_id == portfolio.id)
        ).scalar_one_or_none()
        if not holding:
            raise NotFoundError("Holding not found")
        return holding

    def add_holding(self, business_id: str, portfolio_id: str, data: dict[str, Any]) -> StockHolding:
        portfolio = self.get_portfolio(business_id, portfolio_id)
        data["ticker"] = data["ticker"].strip().upper()
        holding = StockHolding(portfolio_id=portfolio.id, **data)
        self.db.add(holding)
        self.db.commit()
        self.db.refresh(holding)
        return holding

    def update_holding(
        self, business_id: str, portfolio_id: str, holding_id: str, data: dict[str, Any]
    ) -> StockHolding:
        holding = self.get_holding(business_id, portfolio_id, holding_id)
        if data.get("ticker"):
            data["ticker"] = data["ticker"].strip().upper()
        for field, value in data.items():
            setattr(holding, field, value)
        self.db.commit()
        self.db.refresh(holding)
        return holding

    def delete_holding(self, business_id: str, portfolio_id: str, holding_id: str) -> None:
        holding = self.get_holding(business_id, portfolio_id, holding_id)
        holding.is_active = False
        self.db.commit()

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def refresh_prices(self, business_id: str, portfolio_id: str) -> dict[str, Any]:
        """
        Update current_price of every active holding from the quote provider.

        Holdings whose quote is unavailable keep their previous price.

        Returns:
            Portfolio view plus `updated` and `failed` counts
        """
        portfolio = self.get_portfolio(business_id, portfolio_id)
        updated = 0
        failed = 0
        for holding in self._active_holdings(portfolio.id):
            quote = self.price_client.get_quote(holding.ticker)
            if quote is None:
                failed += 1
                continue
            holding.current_price = quote.price
            holding.price_updated_at = utc_now()
            updated += 1

        self.db.commit()
        logger.info("Stock prices refreshed", portfolio_id=portfolio.id, updated=updated, failed=failed)
        return {**self.portfolio_view(portfolio), "updated": updated, "failed": failed}

    def refresh_all(self, business_id: str) -> dict[str, int]:
        """Refresh every active portfolio of a business."""
        updated = 0
        failed = 0
        for view in self.list_portfolios(business_id):
            result = self.refresh_prices(business_id, view["portfolio"].id)
            updated += result["updated"]
            failed += result["failed"]
        return {"updated": updated, "failed": failed}

    def summary(self, business_id: str) -> dict[str, Any]:
        """Totals across all active portfolios."""
        views = self.list_portfolios(business_id)
        combined = totals(views)
        return {
            "total_value": combined["market_value"],
            "total_cost": combined["cost_basis"],
            "total_gain": combined["gain"],
            "total_gain_percent": combined["gain_percent"],
            "portfolio_count": len(views),
            "holding_count": sum(len(v["holdings"]) for v in views),
            "portfolios": [
                {
                    "id": v["portfolio"].id,
                    "name": v["portfolio"].name,
                    "currency": v["portfolio"].currency,
                    "market_value": v["market_value"],
                    "cost_basis": v["cost_basis"],
                    "gain": v["gain"],
                    "gain_percent": v["gain_percent"],
                    "holding_count": len(v["holdings"]),
                }
                for v in views
            ],
        }
