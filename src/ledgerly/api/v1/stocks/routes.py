"""Stock portfolio routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db, get_stock_price_client
from ledgerly.domain.services.stock_service import StockService, holding_values
from ledgerly.infrastructure.database.finance import StockHolding
from ledgerly.infrastructure.database.models import User
from ledgerly.infrastructure.external_apis import StockPriceClient

from .schemas import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioResponse,
    PortfolioUpdate,
    QuoteResponse,
    RefreshResponse,
    StockSummaryResponse,
    SymbolMatch,
)

router = APIRouter(prefix="/stocks", tags=["Stocks"])


def build_holding_response(holding: StockHolding, values: dict[str, Any]) -> HoldingResponse:
    return HoldingResponse(
        id=holding.id,
        portfolio_id=holding.portfolio_id,
        ticker=holding.ticker,
        name=holding.name,
        exchange=holding.exchange,
        sector=holding.sector,
        shares=holding.shares,
        avg_buy_price=holding.avg_buy_price,
        currency=holding.currency,
        buy_date=holding.buy_date,
        notes=holding.notes,
        current_price=holding.current_price,
        price_updated_at=holding.price_updated_at,
        created_at=holding.created_at,
        market_value=values["market_value"],
        cost_basis=values["cost_basis"],
        gain=values["gain"],
        gain_percent=values["gain_percent"],
    )


def build_portfolio_response(view: dict[str, Any]) -> PortfolioResponse:
    portfolio = view["portfolio"]
    return PortfolioResponse(
        id=portfolio.id,
        name=portfolio.name,
        broker=portfolio.broker,
        account_num=portfolio.account_num,
        currency=portfolio.currency,
        notes=portfolio.notes,
        is_active=portfolio.is_active,
        created_at=portfolio.created_at,
        holdings=[build_holding_response(row["holding"], row) for row in view["holdings"]],
        market_value=view["market_value"],
        cost_basis=view["cost_basis"],
        gain=view["gain"],
        gain_percent=view["gain_percent"],
    )


def get_stock_service(
    db: Session = Depends(get_db),
    price_client: StockPriceClient = Depends(get_stock_price_client),
) -> StockService:
    return StockService(db, price_client)


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


@router.get("/summary", response_model=StockSummaryResponse)
def get_summary(
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    """Totals across all portfolios."""
    return service.summary(current_user.business_id)


@router.get("/provider")
def get_provider_info(
    price_client: StockPriceClient = Depends(get_stock_price_client),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return price_client.provider_info()


@router.get("/search", response_model=list[SymbolMatch])
def search_symbols(
    q: str = Query(..., min_length=1, description="Company name or ticker"),
    price_client: StockPriceClient = Depends(get_stock_price_client),
    current_user: User = Depends(get_current_active_user),
):
    return price_client.search_symbol(q)


@router.get("/quote/{ticker}", response_model=QuoteResponse)
def get_quote(
    ticker: str,
    price_client: StockPriceClient = Depends(get_stock_price_client),
    current_user: User = Depends(get_current_active_user),
):
    """Latest quote from the first provider that answers."""
    quote = price_client.get_quote(ticker)
    if quote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Quote not available for {ticker.upper()}")
    return quote.to_dict()


@router.post("/refresh")
def refresh_all(
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Refresh prices of every portfolio."""
    return service.refresh_all(current_user.business_id)


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------


@router.get("/portfolios", response_model=list[PortfolioResponse])
def list_portfolios(
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    return [build_portfolio_response(v) for v in service.list_portfolios(current_user.business_id)]


@router.get("/portfolios/{portfolio_id}", response_model=PortfolioResponse)
def get_portfolio(
    portfolio_id: str,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    portfolio = service.get_portfolio(current_user.business_id, portfolio_id)
    return build_portfolio_response(service.portfolio_view(portfolio))


@router.post("/portfolios", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
def create_portfolio(
    data: PortfolioCreate,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    portfolio = service.create_portfolio(current_user.business_id, data.model_dump())
    return build_portfolio_response(service.portfolio_view(portfolio))


@router.put("/portfolios/{portfolio_id}", response_model=PortfolioResponse)
def update_portfolio(
    portfolio_id: str,
    data: PortfolioUpdate,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    portfolio = service.update_portfolio(current_user.business_id, portfolio_id, data.model_dump(exclude_unset=True))
    return build_portfolio_response(service.portfolio_view(portfolio))


@router.delete("/portfolios/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_portfolio(
    portfolio_id: str,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    service.delete_portfolio(current_user.business_id, portfolio_id)
    return None


@router.post("/portfolios/{portfolio_id}/refresh", response_model=RefreshResponse)
def refresh_portfolio(
    portfolio_id: str,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    """Update current prices from the quote provider."""
    result = service.refresh_prices(current_user.business_id, portfolio_id)
    response = build_portfolio_response(result)
    return RefreshResponse(**response.model_dump(), updated=result["updated"], failed=result["failed"])


# ---------------------------------------------------------------------------
# Holdings
# ---------------------------------------------------------------------------


@router.post(
    "/portfolios/{portfolio_id}/holdings",
    response_model=HoldingResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_holding(
    portfolio_id: str,
    data: HoldingCreate,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    holding = service.add_holding(current_user.business_id, portfolio_id, data.model_dump())
    return build_holding_response(holding, holding_values(holding))


@router.put("/portfolios/{portfolio_id}/holdings/{holding_id}", response_model=HoldingResponse)
def update_holding(
    portfolio_id: str,
    holding_id: str,
    data: HoldingUpdate,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    holding = service.update_holding(
        current_user.business_id, portfolio_id, holding_id, data.model_dump(exclude_unset=True)
    )
    return build_holding_response(holding, holding_values(holding))


@router.delete("/portfolios/{portfolio_id}/holdings/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holding(
    portfolio_id: str,
    holding_id: str,
    service: StockService = Depends(get_stock_service),
    current_user: User = Depends(get_current_active_user),
):
    service.delete_holding(current_user.business_id, portfolio_id, holding_id)
    return None
