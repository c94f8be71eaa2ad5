"""Unit tests for recurring pattern detection."""

from datetime import date
from decimal import Decimal

from ledgerly.domain.services.recurring_service import RecurringService


def _netflix_and_salary(make_transaction) -> None:
    for on in (date(2024, 1, 15), date(2024, 2, 14), date(2024, 3, 15), date(2024, 4, 15)):
        make_transaction(-50, on, "Netflix")
    for on in (date(2024, 3, 1), date(2024, 4, 1), date(2024, 5, 1)):
        make_transaction(10000, on, "Salary ACME")
    make_transaction(-900, date(2024, 4, 20), "Furniture store")


class TestDetect:
    """Tests for RecurringService.detect."""

    def test_detects_monthly_income_and_expense(self, db_session, business, make_transaction):
        """Test monthly series become patterns and one-offs do not."""
        _netflix_and_salary(make_transaction)

        patterns = RecurringService(db_session).detect(business.id, today=date(2024, 7, 15))

        by_description = {p.description: p for p in patterns}
        assert set(by_description) == {"netflix", "salary acme"}

        netflix = by_description["netflix"]
        assert netflix.type == "expense"
        assert netflix.amount == Decimal("-50.00")
        assert netflix.occurrences == 4
        assert netflix.last_seen_date == date(2024, 4, 15)

        salary = by_description["salary acme"]
        assert salary.type == "income"
        assert salary.occurrences == 3

    def test_amounts_outside_tolerance_are_split(self, db_session, business, make_transaction):
        """Test very different amounts with the same description are not one series."""
        make_transaction(-100, date(2024, 1, 10), "Electric")
        make_transaction(-300, date(2024, 2, 10), "Electric")
        make_transaction(-100, date(2024, 3, 25), "Electric")

        assert RecurringService(db_session).detect(business.id, today=date(2024, 4, 1)) == []

    def test_redetect_updates_existing(self, db_session, business, make_transaction):
        """Test a second run upserts instead of duplicating."""
        _netflix_and_salary(make_transaction)
        service = RecurringService(db_session)
        service.detect(business.id, today=date(2024, 5, 20))

        make_transaction(-50, date(2024, 5, 15), "Netflix")
        service.detect(business.id, today=date(2024, 5, 20))

        patterns = service.list_patterns(business.id)
        assert len(patterns) == 2
        netflix = next(p for p in patterns if p.description == "netflix")
        assert netflix.occurrences == 5

    def test_list_orders_income_first(self, db_session, business, make_transaction):
        """Test income patterns are listed before expenses."""
        _netflix_and_salary(make_transaction)
        service = RecurringService(db_session)
        service.detect(business.id, today=date(2024, 7, 15))

        assert [p.type for p in service.list_patterns(business.id)] == ["income", "expense"]


class TestConfirmAndDismiss:
    """Tests for confirming and dismissing patterns."""

    def test_confirm_marks_transactions(self, db_session, business, make_transaction):
        """Test confirming flags matching transactions as recurring."""
        _netflix_and_salary(make_transaction)
        service = RecurringService(db_session)
        netflix = next(p for p in service.detect(business.id, today=date(2024, 7, 15)) if p.type == "expense")

        confirmed = service.confirm(business.id, netflix.id)

        assert confirmed.is_confirmed
        # A new charge arrives later and is picked up by apply_confirmed
        make_transaction(-52, date(2024, 5, 15), "NETFLIX")
        result = service.apply_confirmed(business.id)
        assert result == {"patterns_applied": 1, "transactions_updated": 1}

    def test_dismissed_pattern_never_returns(self, db_session, business, make_transaction):
        """Test dismissed descriptions are skipped by later detection."""
        _netflix_and_salary(make_transaction)
        service = RecurringService(db_session)
        netflix = next(p for p in service.detect(business.id, today=date(2024, 7, 15)) if p.type == "expense")

        service.dismiss(business.id, netflix.id)
        again = service.detect(business.id, today=date(2024, 7, 15))

        assert [p.description for p in again] == ["salary acme"]
        assert all(p.description != "netflix" for p in service.list_patterns(business.id))
