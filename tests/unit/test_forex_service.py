"""Unit tests for forex accounts and transfers."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.domain.services.forex_service import ForexService


@pytest.fixture
def usd_account(db_session, business):
    """USD account holding 1000."""
    return ForexService(db_session).create_account(
        business.id, {"name": "Dollar savings", "currency": "usd", "balance": Decimal("1000")}
    )


def _transfer(transfer_type: str, account_id=None, **overrides) -> dict:
    data = {
        "type": transfer_type,
        "from_currency": "ils",
        "to_currency": "usd",
        "from_amount": Decimal("3700"),
        "to_amount": Decimal("1000"),
        "exchange_rate": Decimal("3.7"),
        "date": date(2024, 3, 1),
        "forex_account_id": account_id,
    }
    data.update(overrides)
    return data


class TestForexTransfers:
    """Tests for transfers and their effect on linked balances."""

    def test_currency_upper_cased(self, usd_account):
        """Test account currency is normalized."""
        assert usd_account.currency == "USD"

    def test_buy_adds_to_amount(self, db_session, business, usd_account):
        """Test BUY credits the received amount."""
        transfer = ForexService(db_session).create_transfer(business.id, _transfer("BUY", usd_account.id))

        db_session.refresh(usd_account)
        assert usd_account.balance == Decimal("2000.00")
        assert transfer.from_currency == "ILS"
        assert transfer.forex_account.id == usd_account.id

    def test_sell_subtracts_from_amount(self, db_session, business, usd_account):
        """Test SELL debits the sold amount."""
        ForexService(db_session).create_transfer(
            business.id,
            _transfer(
                "SELL",
                usd_account.id,
                from_currency="USD",
                to_currency="ILS",
                from_amount=Decimal("400"),
                to_amount=Decimal("1480"),
            ),
        )

        db_session.refresh(usd_account)
        assert usd_account.balance == Decimal("600.00")

    def test_transfer_credits_to_amount(self, db_session, business, usd_account):
        """Test TRANSFER behaves like BUY on the balance."""
        ForexService(db_session).create_transfer(
            business.id, _transfer("TRANSFER", usd_account.id, to_amount=Decimal("250"))
        )

        db_session.refresh(usd_account)
        assert usd_account.balance == Decimal("1250.00")

    def test_unlinked_transfer(self, db_session, business, usd_account):
        """Test transfers without an account leave balances alone."""
        transfer = ForexService(db_session).create_transfer(business.id, _transfer("BUY"))

        db_session.refresh(usd_account)
        assert transfer.forex_account_id is None
        assert usd_account.balance == Decimal("1000.00")

    def test_update_does_not_reapply(self, db_session, business, usd_account):
        """Test editing amounts keeps the balance from creation."""
        service = ForexService(db_session)
        transfer = service.create_transfer(business.id, _transfer("BUY", usd_account.id))

        updated = service.update_transfer(
            business.id, transfer.id, {"to_amount": Decimal("5000"), "to_currency": "eur"}
        )

        db_session.refresh(usd_account)
        assert updated.to_currency == "EUR"
        assert updated.to_amount == Decimal("5000")
        assert usd_account.balance == Decimal("2000.00")

    def test_invalid_type(self, db_session, business):
        """Test unknown transfer types are rejected."""
        with pytest.raises(BusinessRuleError):
            ForexService(db_session).create_transfer(business.id, _transfer("SWAP"))

    def test_account_of_other_business(self, db_session, usd_account, other_user):
        """Test a transfer cannot target another business's account."""
        with pytest.raises(NotFoundError):
            ForexService(db_session).create_transfer(other_user.business_id, _transfer("BUY", usd_account.id))

    def test_list_counts_transfers(self, db_session, business, usd_account):
        """Test the account list reports transfer counts."""
        service = ForexService(db_session)
        service.create_transfer(business.id, _transfer("BUY", usd_account.id))
        service.create_transfer(business.id, _transfer("BUY", usd_account.id, date=date(2024, 3, 2)))

        rows = service.list_accounts(business.id)

        assert rows[0]["transfer_count"] == 2
        assert [t.date for t in service.list_transfers(business.id, usd_account.id)] == [
            date(2024, 3, 2),
            date(2024, 3, 1),
        ]
