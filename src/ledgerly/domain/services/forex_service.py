"""Foreign-currency accounts, transfers and exchange rates."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import round_money, to_decimal
from ledgerly.infrastructure.database.finance import ForexAccount, ForexTransfer, ForexTransferType
from ledgerly.infrastructure.external_apis import ExchangeRateClient

logger = get_logger(__name__)

TRANSFER_TYPES = {t.value for t in ForexTransferType}


def balance_delta(transfer_type: str, from_amount: Decimal, to_amount: Decimal) -> Decimal:
    """How a transfer moves the linked account balance (SELL spends, others receive)."""
    if transfer_type == ForexTransferType.SELL.value:
        return -to_decimal(from_amount)
    return to_decimal(to_amount)


class ForexService:
    """Service for forex accounts, currency transfers and rate lookups."""

    def __init__(self, db: Session, rate_client: Optional[ExchangeRateClient] = None):
        self.db = db
        self._rate_client = rate_client

    @property
    def rate_client(self) -> ExchangeRateClient:
        if self._rate_client is None:
            self._rate_client = ExchangeRateClient()
        return self._rate_client

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self, business_id: str) -> list[dict[str, Any]]:
        """Active forex accounts (newest first) with their transfer count."""
        accounts = self.db.execute(
            select(ForexAccount)
            .where(ForexAccount.business_id == business_id, ForexAccount.is_active.is_(True))
            .order_by(ForexAccount.created_at.desc())
        ).scalars().all()

        ids = [a.id for a in accounts]
        counts: dict[str, int] = {}
        if ids:
            rows = self.db.execute(
                select(ForexTransfer.forex_account_id, func.count(ForexTransfer.id))
                .where(ForexTransfer.forex_account_id.in_(ids))
                .group_by(ForexTransfer.forex_account_id)
            ).all()
            counts = {account_id: count for account_id, count in rows}
        return [{"account": a, "transfer_count": counts.get(a.id, 0)} for a in accounts]

    def get_account(self, business_id: str, account_id: str) -> ForexAccount:
        account = self.db.execute(
            select(ForexAccount).where(ForexAccount.id == account_id, ForexAccount.business_id == business_id)
        ).scalar_one_or_none()
        if not account:
            raise NotFoundError("Forex account not found")
        return account

    def create_account(self, business_id: str, data: dict[str, Any]) -> ForexAccount:
        data["currency"] = data["currency"].upper()
        account = ForexAccount(business_id=business_id, **data)
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def update_account(self, business_id: str, account_id: str, data: dict[str, Any]) -> ForexAccount:
        account = self.get_account(business_id, account_id)
        if data.get("currency"):
            data["currency"] = data["currency"].upper()
        for field, value in data.items():
            setattr(account, field, value)
        self.db.commit()
        self.db.refresh(account)
        return account

    def delete_account(self, business_id: str, account_id: str) -> None:
        account = self.get_account(business_id, account_id)
        self.db.delete(account)
        self.db.commit()

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def list_transfers(self, business_id: str, forex_account_id: Optional[str] = None) -> list[ForexTransfer]:
        query = (
            select(ForexTransfer)
            .options(joinedload(ForexTransfer.forex_account))
            .where(ForexTransfer.business_id == business_id)
        )
        if forex_account_id:
            query = query.where(ForexTransfer.forex_account_id == forex_account_id)
        return list(self.db.execute(query.order_by(ForexTransfer.date.desc())).unique().scalars().all())

    def get_transfer(self, business_id: str, transfer_id: str) -> ForexTransfer:
        transfer = self.db.execute(
            select(ForexTransfer)
            .options(joinedload(ForexTransfer.forex_account))
            .where(ForexTransfer.id == transfer_id, ForexTransfer.business_id == business_id)
        ).unique().scalar_one_or_none()
        if not transfer:
            raise NotFoundError("Forex transfer not found")
        return transfer

    def create_transfer(self, business_id: str, data: dict[str, Any]) -> ForexTransfer:
        """
        Record a currency exchange.

        When linked to a forex account, the account balance moves by
        -from_amount for SELL and +to_amount for BUY and TRANSFER.
        """
        if data["type"] not in TRANSFER_TYPES:
            raise BusinessRuleError(f"Invalid transfer type: {data['type']}")
        data["from_currency"] = data["from_currency"].upper()
        data["to_currency"] = data["to_currency"].upper()

        account = None
        if data.get("forex_account_id"):
            account = self.get_account(business_id, data["forex_account_id"])
        else:
            data["forex_account_id"] = None

        transfer = ForexTransfer(business_id=business_id, **data)
        self.db.add(transfer)
        if account is not None:
            delta = balance_delta(transfer.type, transfer.from_amount, transfer.to_amount)
            account.balance = round_money(to_decimal(account.balance) + delta)
            logger.info("Forex balance adjusted", forex_account_id=account.id, delta=str(delta))

        self.db.commit()
        return self.get_transfer(business_id, transfer.id)

    def update_transfer(self, business_id: str, transfer_id: str, data: dict[str, Any]) -> ForexTransfer:
        """Edit transfer details. Linked account balances are not re-applied."""
        transfer = self.get_transfer(business_id, transfer_id)
        if data.get("type") is not None and data["type"] not in TRANSFER_TYPES:
            raise BusinessRuleError(f"Invalid transfer type: {data['type']}")
        for key in ("from_currency", "to_currency"):
            if data.get(key):
                data[key] = data[key].upper()
        for field, value in data.items():
            setattr(transfer, field, value)
        self.db.commit()
        return self.get_transfer(business_id, transfer.id)

    def delete_transfer(self, business_id: str, transfer_id: str) -> None:
        transfer = self.get_transfer(business_id, transfer_id)
        self.db.delete(transfer)
        self.db.commit()

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def rates(self, base: str = "ILS") -> dict[str, Any]:
        return self.rate_client.get_rates(base)

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> dict[str, Any]:
        """
        Convert an amount using the latest rates.

        Tries the direct rate, then the inverse of the reverse rate.

        Raises:
            BusinessRuleError: No rate is known for the pair
        """
        from_currency, to_currency = from_currency.upper(), to_currency.upper()
        amount = to_decimal(amount)
        if from_currency == to_currency:
            return {
                "from": from_currency,
                "to": to_currency,
                "amount": amount,
                "result": round_money(amount),
                "rate": Decimal("1"),
                "date": date.today().isoformat(),
            }

        direct = self.rate_client.get_rates(from_currency)
        rate = direct["rates"].get(to_currency)
        rate_date = direct["date"]
        if not rate:
            reverse = self.rate_client.get_rates(to_currency)
            reverse_rate = reverse["rates"].get(from_currency)
            if not reverse_rate:
                raise BusinessRuleError(f"No rate found for {from_currency} -> {to_currency}")
            rate = Decimal("1") / to_decimal(reverse_rate)
            rate_date = reverse["date"]

        return {
            "from": from_currency,
            "to": to_currency,
            "amount": amount,
            "result": round_money(amount * to_decimal(rate)),
            "rate": to_decimal(rate),
            "date": rate_date,
        }

    def history(
        self,
        from_currency: str,
        to_currency: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        return self.rate_client.get_history(from_currency, to_currency, start_date, end_date)

    def currencies(self) -> dict[str, str]:
        return self.rate_client.get_currencies()
