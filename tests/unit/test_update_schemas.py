"""Unit tests for null handling in partial-update schemas."""

import pytest
from pydantic import ValidationError

from ledgerly.api.v1.accounts.schemas import AccountUpdate
from ledgerly.api.v1.forex.schemas import ForexAccountUpdate, ForexTransferUpdate
from ledgerly.api.v1.invoices.schemas import InvoiceUpdate
from ledgerly.api.v1.stocks.schemas import HoldingUpdate, PortfolioUpdate
from ledgerly.api.v1.transactions.schemas import TransactionUpdate


class TestRejectNull:
    """Required columns refuse an explicit null."""

    @pytest.mark.parametrize(
        "schema, field",
        [
            (TransactionUpdate, "amount"),
            (TransactionUpdate, "date"),
            (TransactionUpdate, "description"),
            (TransactionUpdate, "is_vat_included"),
            (TransactionUpdate, "is_tax_deductible"),
            (TransactionUpdate, "currency"),
            (AccountUpdate, "balance"),
            (InvoiceUpdate, "items"),
            (ForexAccountUpdate, "currency"),
            (ForexTransferUpdate, "from_amount"),
            (PortfolioUpdate, "name"),
            (HoldingUpdate, "shares"),
        ],
    )
    def test_null_rejected(self, schema, field):
        """Test null fails validation for a NOT NULL column."""
        with pytest.raises(ValidationError) as exc:
            schema.model_validate({field: None})

        assert exc.value.errors()[0]["loc"] == (field,)

    def test_omitted_fields_stay_unset(self):
        """Test a partial payload only carries what was sent."""
        update = TransactionUpdate.model_validate({"notes": "paid late"})

        assert update.model_dump(exclude_unset=True) == {"notes": "paid late"}

    def test_nullable_fields_accept_null(self):
        """Test optional columns can still be cleared."""
        update = TransactionUpdate.model_validate({"category_id": None, "vat_amount": None})

        assert update.model_dump(exclude_unset=True) == {"category_id": None, "vat_amount": None}

    def test_holding_price_can_be_cleared(self):
        """Test the cached quote is nullable."""
        update = HoldingUpdate.model_validate({"current_price": None})

        assert update.current_price is None
