"""Integration tests for dashboard, alerts, categories and budgets routes."""

from datetime import date
from decimal import Decimal

from tests.conftest import auth_headers


class TestDashboard:
    """Tests for /api/v1/dashboard."""

    def test_summary(self, client, token, make_transaction, expense_category):
        """Test period totals and balances as of the period end."""
        make_transaction(2000, date(2024, 3, 1), "Invoice payment", is_recurring=True)
        make_transaction(-300, date(2024, 3, 10), "Licence", category_id=expense_category.id)
        make_transaction(-50, date(2024, 4, 1), "Next month")

        response = client.get(
            "/api/v1/dashboard/summary",
            params={"from": "2024-03-01", "to": "2024-03-31"},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(str(data["income"])) == Decimal("2000")
        assert Decimal(str(data["expenses"])) == Decimal("300")
        assert Decimal(str(data["fixed_income_sum"])) == Decimal("2000")
        assert Decimal(str(data["total_balance"])) == Decimal("2700")
        assert data["transaction_count"] == 2
        assert data["accounts"][0]["name"] == "Main Bank"

    def test_recent_transactions(self, client, token, make_transaction):
        """Test the newest rows come first."""
        make_transaction(-10, date(2024, 3, 1), "Old")
        make_transaction(-10, date(2024, 3, 9), "New")

        response = client.get(
            "/api/v1/dashboard/recent-transactions", params={"limit": 1}, headers=auth_headers(token)
        )

        assert [t["description"] for t in response.json()] == ["New"]

    def test_search(self, client, token, make_transaction):
        """Test the free-text lookup."""
        make_transaction(-45, date(2024, 3, 1), "Spotify family")

        data = client.get("/api/v1/dashboard/search", params={"q": "spotify"}, headers=auth_headers(token)).json()

        assert [t["description"] for t in data["transactions"]] == ["Spotify family"]
        assert data["clients"] == []
        assert data["invoices"] == []


class TestAlertsRoute:
    """Tests for GET /api/v1/alerts."""

    def test_low_balance_alert(self, client, token, make_transaction):
        """Test alerts are generated on request."""
        make_transaction(-950, date(2024, 1, 15), "Rent")

        response = client.get("/api/v1/alerts", headers=auth_headers(token))

        assert response.status_code == 200
        [alert] = [a for a in response.json() if a["type"] == "low_balance"]
        assert alert["severity"] == "critical"
        assert alert["data"]["balance"] == 50


class TestCategoriesAndBudgets:
    """Tests for /api/v1/categories and /api/v1/budgets."""

    def test_categories_seeded_for_new_business(self, client, token):
        """Test the default set appears on first listing."""
        response = client.get("/api/v1/categories", headers=auth_headers(token))

        assert response.status_code == 200
        assert len(response.json()) > 0

    def test_create_category_conflict(self, client, token, expense_category):
        """Test duplicate slugs are rejected."""
        response = client.post(
            "/api/v1/categories", json={"name": "Software"}, headers=auth_headers(token)
        )

        assert response.status_code == 409

    def test_budget_upsert_and_list(self, client, token, expense_category):
        """Test one budget per category."""
        first = client.post(
            "/api/v1/budgets",
            json={"category_id": expense_category.id, "amount": "500"},
            headers=auth_headers(token),
        )
        second = client.post(
            "/api/v1/budgets",
            json={"category_id": expense_category.id, "amount": "800"},
            headers=auth_headers(token),
        )

        assert first.json()["id"] == second.json()["id"]
        listed = client.get("/api/v1/budgets", headers=auth_headers(token)).json()
        assert len(listed) == 1
        assert Decimal(str(listed[0]["amount"])) == Decimal("800")
        assert listed[0]["category_name"] == "Software"
