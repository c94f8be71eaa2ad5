"""Unit tests for the categorization rule engine."""

import pytest

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.domain.services.rule_service import RuleService, extract_pattern


class TestExtractPattern:
    """Tests for description clean-up."""

    @pytest.mark.parametrize(
        "description,expected",
        [
            ("SHUFERSAL LTD 12/03/2024 #1234", "SHUFERSAL"),
            ("NETFLIX.COM 1,234.56", "NETFLIX.COM"),
            ("Super Pharm סניף 15", "Super Pharm"),
            ("ONE TWO THREE FOUR FIVE", "ONE TWO THREE FOUR"),
        ],
    )
    def test_extract_pattern(self, description, expected):
        """Test noise is stripped and words are capped."""
        assert extract_pattern(description) == expected

    def test_falls_back_to_description(self):
        """Test descriptions made only of noise are kept as-is."""
        assert extract_pattern("12345") == "12345"


class TestSuggestCategory:
    """Tests for rule matching."""

    def test_contains_rule(self, db_session, business, expense_category):
        """Test a contains rule matches case-insensitively."""
        service = RuleService(db_session)
        service.create_rule(business.id, {"category_id": expense_category.id, "pattern": "NETFLIX"})

        assert service.suggest_category(business.id, "Netflix.com 12345") == expense_category.id
        assert service.suggest_category(business.id, "Spotify") is None

    def test_starts_with_rule(self, db_session, business, expense_category):
        """Test startsWith only matches the beginning."""
        service = RuleService(db_session)
        service.create_rule(
            business.id,
            {"category_id": expense_category.id, "pattern": "AWS", "pattern_type": "startsWith"},
        )

        assert service.suggest_category(business.id, "AWS EMEA invoice") == expense_category.id
        assert service.suggest_category(business.id, "Payment to AWS") is None

    def test_regex_rule(self, db_session, business, expense_category):
        """Test regex rules."""
        service = RuleService(db_session)
        service.create_rule(
            business.id,
            {"category_id": expense_category.id, "pattern": r"^git(hub|lab)", "pattern_type": "regex"},
        )

        assert service.suggest_category(business.id, "GitLab Inc") == expense_category.id

    def test_fuzzy_second_pass(self, db_session, business, expense_category):
        """Test the extracted pattern may be contained in a longer rule."""
        service = RuleService(db_session)
        service.create_rule(business.id, {"category_id": expense_category.id, "pattern": "SUPER PHARM BRANCH"})

        assert service.suggest_category(business.id, "SUPER PHARM 123") == expense_category.id

    def test_priority_wins(self, db_session, business, expense_category, income_category):
        """Test higher priority rules are checked first."""
        service = RuleService(db_session)
        service.create_rule(business.id, {"category_id": expense_category.id, "pattern": "PAY", "priority": 1})
        service.create_rule(business.id, {"category_id": income_category.id, "pattern": "PAYPAL", "priority": 5})

        assert service.suggest_category(business.id, "PAYPAL transfer") == income_category.id

    def test_empty_description(self, db_session, business):
        """Test blank descriptions never match."""
        assert RuleService(db_session).suggest_category(business.id, "   ") is None


class TestRuleManagement:
    """Tests for rule CRUD and learning."""

    def test_invalid_regex_rejected(self, db_session, business, expense_category):
        """Test broken regular expressions are rejected."""
        with pytest.raises(BusinessRuleError):
            RuleService(db_session).create_rule(
                business.id,
                {"category_id": expense_category.id, "pattern": "([", "pattern_type": "regex"},
            )

    def test_unknown_category_rejected(self, db_session, business):
        """Test rules must point to a category of the business."""
        with pytest.raises(NotFoundError):
            RuleService(db_session).create_rule(business.id, {"category_id": "missing", "pattern": "X"})

    def test_learning_creates_then_boosts(self, db_session, business, expense_category, income_category):
        """Test corrections create a rule and later strengthen it."""
        service = RuleService(db_session)

        rule = service.learn_from_correction(business.id, "ZOOM.US 800-123", expense_category.id)
        assert rule.pattern == "ZOOM.US"
        assert rule.priority == 10

        again = service.learn_from_correction(business.id, "zoom.us 12/05/2024", income_category.id)
        assert again.id == rule.id
        assert again.priority == 15
        assert again.category_id == income_category.id

    def test_delete_rule(self, db_session, business, expense_category):
        """Test deleting a rule."""
        service = RuleService(db_session)
        rule = service.create_rule(business.id, {"category_id": expense_category.id, "pattern": "UBER"})

        service.delete_rule(business.id, rule.id)

        assert service.list_rules(business.id) == []
        with pytest.raises(NotFoundError):
            service.delete_rule(business.id, rule.id)
