"""Account service: CRUD and balance reconstruction."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import round_money, to_decimal
from ledgerly.infrastructure.database.finance import (
    BALANCE_ACCOUNT_TYPES,
    Account,
    AccountType,
    Transaction,
)

logger = get_logger(__name__)


class AccountService:
    """Service for financial accounts of a business."""

    def __init__(self, db: Session):
        self.db = db

    def list_accounts(self, business_id: str, include_inactive: bool = False) -> list[Account]:
        query = select(Account).where(Account.business_id == business_id)
        if not include_inactive:
            query = query.where(Account.is_active.is_(True))
        query = query.order_by(Account.type, Account.name)
        return list(self.db.execute(query).scalars().all())

    def get(self, business_id: str, account_id: str) -> Account:
        account = self.db.execute(
            select(Account).where(Account.id == account_id, Account.business_id == business_id)
        ).scalar_one_or_none()
        if not account:
            raise NotFoundError("Account not found")
        return account

    def _validate(self, business_id: str, data: dict[str, Any]) -> None:
        account_type = data.get("type")
        if account_type is not None and account_type not in {t.value for t in AccountType}:
            raise BusinessRuleError(f"Invalid account type: {account_type}")
        linked_id = data.get("linked_bank_account_id")
        if linked_id:
            linked = self.get(business_id, linked_id)
            if linked.type != AccountType.BANK.value:
                raise BusinessRuleError("Linked account must be a bank account")

    def create(self, business_id: str, data: dict[str, Any]) -> Account:
        self._validate(business_id, data)
        account = Account(business_id=business_id, **data)
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        logger.info("Account created", account_id=account.id, type=account.type)
        return account

    def update(self, business_id: str, account_id: str, data: dict[str, Any]) -> Account:
        account = self.get(business_id, account_id)
        self._validate(business_id, data)
        if data.get("linked_bank_account_id") == account.id:
            raise BusinessRuleError("Account cannot be linked to itself")
        for field, value in data.items():
            setattr(account, field, value)
        self.db.commit()
        self.db.refresh(account)
        return account

    def delete(self, business_id: str, account_id: str) -> None:
        """Soft delete: transactions keep referencing the account."""
        account = self.get(business_id, account_id)
        account.is_active = False
        self.db.commit()
        logger.info("Account deactivated", account_id=account.id)

    def calculate_balance(self, account: Account, as_of: Optional[date] = None) -> Decimal:
        """
        Reconstruct the balance of an account.

        The stored balance is a snapshot taken on balance_date; every
        transaction dated strictly after it is added on top. Without a
        balance_date all transactions count. `as_of` caps the transactions
        included.
        """
        query = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.account_id == account.id
        )
        if account.balance_date is not None:
            query = query.where(Transaction.date > account.balance_date)
        if as_of is not None:
            query = query.where(Transaction.date <= as_of)

        delta = to_decimal(self.db.execute(query).scalar())
        return round_money(to_decimal(account.balance) + delta)

    def balances(self, accounts: list[Account], as_of: Optional[date] = None) -> dict[str, Optional[Decimal]]:
        """Calculated balance per account id for balance-bearing account types."""
        return {
            account.id: self.calculate_balance(account, as_of) if account.type in BALANCE_ACCOUNT_TYPES else None
            for account in accounts
        }
