"""Account routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.account_service import AccountService
from ledgerly.infrastructure.database.finance import Account
from ledgerly.infrastructure.database.models import User

from .schemas import AccountBalanceResponse, AccountCreate, AccountResponse, AccountUpdate

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def build_account_response(account: Account, calculated_balance=None) -> AccountResponse:
    response = AccountResponse.model_validate(account)
    response.calculated_balance = calculated_balance
    return response


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    include_inactive: bool = Query(False, description="Include deactivated accounts"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List accounts with their calculated balance."""
    service = AccountService(db)
    accounts = service.list_accounts(current_user.business_id, include_inactive)
    balances = service.balances(accounts)
    return [build_account_response(a, balances[a.id]) for a in accounts]


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Get account by ID."""
    service = AccountService(db)
    account = service.get(current_user.business_id, account_id)
    return build_account_response(account, service.balances([account])[account.id])


@router.get("/{account_id}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    account_id: str,
    as_of: Optional[date] = Query(None, description="Count transactions up to this date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Snapshot balance plus every later transaction."""
    service = AccountService(db)
    account = service.get(current_user.business_id, account_id)
    return AccountBalanceResponse(
        account_id=account.id,
        snapshot_balance=account.balance,
        balance_date=account.balance_date,
        as_of=as_of,
        calculated_balance=service.calculate_balance(account, as_of),
    )


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    data: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a new account."""
    service = AccountService(db)
    account = service.create(current_user.business_id, data.model_dump())
    return build_account_response(account, service.balances([account])[account.id])


@router.put("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: str,
    data: AccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Update an account."""
    service = AccountService(db)
    account = service.update(current_user.business_id, account_id, data.model_dump(exclude_unset=True))
    return build_account_response(account, service.balances([account])[account.id])


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Deactivate an account (soft delete)."""
    AccountService(db).delete(current_user.business_id, account_id)
    return None
