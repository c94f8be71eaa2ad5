"""Forex routes: currency accounts, transfers and exchange rates."""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db, get_exchange_rate_client
from ledgerly.domain.services.forex_service import ForexService
from ledgerly.infrastructure.database.finance import ForexAccount, ForexTransfer
from ledgerly.infrastructure.database.models import User
from ledgerly.infrastructure.external_apis import ExchangeRateClient

from .schemas import (
    ConversionResponse,
    ForexAccountCreate,
    ForexAccountResponse,
    ForexAccountUpdate,
    ForexTransferCreate,
    ForexTransferResponse,
    ForexTransferUpdate,
)

router = APIRouter(prefix="/forex", tags=["Forex"])

CURRENCY_PATTERN = "^[A-Za-z]{3}$"


def get_forex_service(
    db: Session = Depends(get_db),
    rate_client: ExchangeRateClient = Depends(get_exchange_rate_client),
) -> ForexService:
    return ForexService(db, rate_client)


def build_account_response(account: ForexAccount, transfer_count: int = 0) -> ForexAccountResponse:
    response = ForexAccountResponse.model_validate(account)
    response.transfer_count = transfer_count
    return response


def build_transfer_response(transfer: ForexTransfer) -> ForexTransferResponse:
    return ForexTransferResponse(
        id=transfer.id,
        forex_account_id=transfer.forex_account_id,
        forex_account_name=transfer.forex_account.name if transfer.forex_account else None,
        type=transfer.type,
        from_currency=transfer.from_currency,
        to_currency=transfer.to_currency,
        from_amount=transfer.from_amount,
        to_amount=transfer.to_amount,
        exchange_rate=transfer.exchange_rate,
        fee=transfer.fee,
        date=transfer.date,
        description=transfer.description,
        notes=transfer.notes,
        created_at=transfer.created_at,
    )


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


@router.get("/rates")
def get_rates(
    base: str = Query("ILS", pattern=CURRENCY_PATTERN),
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Latest rates for a base currency (cached, with offline fallback)."""
    return service.rates(base.upper())


@router.get("/convert", response_model=ConversionResponse, response_model_by_alias=True)
def convert(
    amount: Decimal = Query(..., description="Amount in the source currency"),
    from_currency: str = Query(..., alias="from", pattern=CURRENCY_PATTERN),
    to_currency: str = Query(..., alias="to", pattern=CURRENCY_PATTERN),
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    return service.convert(amount, from_currency, to_currency)


@router.get("/history")
def get_history(
    from_currency: str = Query(..., alias="from", pattern=CURRENCY_PATTERN),
    to_currency: str = Query(..., alias="to", pattern=CURRENCY_PATTERN),
    start_date: Optional[date] = Query(None, description="Defaults to 90 days ago"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return service.history(from_currency.upper(), to_currency.upper(), start_date, end_date)


@router.get("/currencies")
def get_currencies(
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    return service.currencies()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.get("/accounts", response_model=list[ForexAccountResponse])
def list_accounts(
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    rows = service.list_accounts(current_user.business_id)
    return [build_account_response(row["account"], row["transfer_count"]) for row in rows]


@router.get("/accounts/{account_id}", response_model=ForexAccountResponse)
def get_account(
    account_id: str,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    account = service.get_account(current_user.business_id, account_id)
    return build_account_response(account, len(account.transfers))


@router.post("/accounts", response_model=ForexAccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    data: ForexAccountCreate,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    return build_account_response(service.create_account(current_user.business_id, data.model_dump()))


@router.put("/accounts/{account_id}", response_model=ForexAccountResponse)
def update_account(
    account_id: str,
    data: ForexAccountUpdate,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    account = service.update_account(current_user.business_id, account_id, data.model_dump(exclude_unset=True))
    return build_account_response(account, len(account.transfers))


@router.delete("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    service.delete_account(current_user.business_id, account_id)
    return None


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


@router.get("/transfers", response_model=list[ForexTransferResponse])
def list_transfers(
    forex_account_id: Optional[str] = Query(None),
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    return [build_transfer_response(t) for t in service.list_transfers(current_user.business_id, forex_account_id)]


@router.get("/transfers/{transfer_id}", response_model=ForexTransferResponse)
def get_transfer(
    transfer_id: str,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    return build_transfer_response(service.get_transfer(current_user.business_id, transfer_id))


@router.post("/transfers", response_model=ForexTransferResponse, status_code=status.HTTP_201_CREATED)
def create_transfer(
    data: ForexTransferCreate,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    """Record an exchange; a linked account balance moves with it."""
    return build_transfer_response(service.create_transfer(current_user.business_id, data.model_dump()))


@router.put("/transfers/{transfer_id}", response_model=ForexTransferResponse)
def update_transfer(
    transfer_id: str,
    data: ForexTransferUpdate,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    transfer = service.update_transfer(current_user.business_id, transfer_id, data.model_dump(exclude_unset=True))
    return build_transfer_response(transfer)


@router.delete("/transfers/{transfer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transfer(
    transfer_id: str,
    service: ForexService = Depends(get_forex_service),
    current_user: User = Depends(get_current_active_user),
):
    service.delete_transfer(current_user.business_id, transfer_id)
    return None
