"""Integration tests for report routes."""

from datetime import date
from decimal import Decimal

from tests.conftest import auth_headers

PERIOD = {"from": "2024-03-01", "to": "2024-04-30"}


def _money(value) -> Decimal:
    return Decimal(str(value))


class TestProfitLossRoute:
    """Tests for GET /api/v1/reports/profit-loss."""

    def test_profit_loss(self, client, token, make_transaction, expense_category):
        """Test revenue, expenses and net profit for a period."""
        make_transaction(5000, date(2024, 3, 5), "Client payment")
        make_transaction(-1000, date(2024, 3, 20), "IDE licence", category_id=expense_category.id)
        make_transaction(-500, date(2024, 4, 2), "Unsorted")
        make_transaction(-999, date(2024, 5, 2), "Outside period")

        response = client.get("/api/v1/reports/profit-loss", params=PERIOD, headers=auth_headers(token))

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == {"from": "2024-03-01", "to": "2024-04-30"}
        assert _money(data["revenue"]["total_revenue"]) == Decimal("5000")
        assert _money(data["total_operating_expenses"]) == Decimal("1500")
        assert _money(data["net_profit"]) == Decimal("3500")
        assert [row["category"] for row in data["operating_expenses"]] == ["Software", "Uncategorized"]
        assert [m["month"] for m in data["monthly_breakdown"]] == ["2024-03", "2024-04"]

    def test_requires_auth(self, client):
        """Test anonymous access is rejected."""
        assert client.get("/api/v1/reports/profit-loss").status_code == 401


class TestCashFlowRoute:
    """Tests for GET /api/v1/reports/cash-flow."""

    def test_cash_flow(self, client, token, make_transaction):
        """Test the opening balance and running balance."""
        make_transaction(200, date(2024, 2, 10), "Before period")
        make_transaction(3000, date(2024, 3, 5), "Income")
        make_transaction(-800, date(2024, 4, 5), "Rent")

        data = client.get("/api/v1/reports/cash-flow", params=PERIOD, headers=auth_headers(token)).json()

        assert _money(data["opening_balance"]) == Decimal("1200")
        assert _money(data["inflows"]["total"]) == Decimal("3000")
        assert _money(data["outflows"]["total"]) == Decimal("800")
        assert _money(data["closing_balance"]) == Decimal("3400")
        assert [_money(m["running_balance"]) for m in data["monthly_breakdown"]] == [
            Decimal("4200"),
            Decimal("3400"),
        ]


class TestBreakdownRoutes:
    """Tests for category breakdown, client revenue and tax summary."""

    def test_category_breakdown(self, client, token, make_transaction, expense_category):
        """Test expenses and income are grouped per category."""
        make_transaction(-300, date(2024, 3, 1), category_id=expense_category.id)
        make_transaction(-100, date(2024, 3, 2), category_id=expense_category.id)
        make_transaction(1000, date(2024, 3, 3))

        data = client.get(
            "/api/v1/reports/category-breakdown", params=PERIOD, headers=auth_headers(token)
        ).json()

        [software] = data["expenses"]["categories"]
        assert software["category_slug"] == "software"
        assert software["count"] == 2
        assert _money(software["average"]) == Decimal("200")
        assert _money(data["income"]["total"]) == Decimal("1000")

    def test_client_revenue_empty(self, client, token):
        """Test a business without paid invoices."""
        data = client.get(
            "/api/v1/reports/client-revenue", params=PERIOD, headers=auth_headers(token)
        ).json()

        assert data["client_count"] == 0
        assert data["clients"] == []

    def test_tax_summary(self, client, token):
        """Test the yearly summary answers for an explicit year."""
        data = client.get(
            "/api/v1/reports/tax-summary", params={"year": 2024}, headers=auth_headers(token)
        ).json()

        assert data["year"] == 2024
        assert data["periods"] == []


class TestForecastRoute:
    """Tests for GET /api/v1/reports/forecast."""

    def test_forecast_without_history(self, client, token):
        """Test an empty history falls back to averages."""
        data = client.get(
            "/api/v1/reports/forecast", params={"months": 3}, headers=auth_headers(token)
        ).json()

        assert data["methodology"] == "average"
        assert data["data_points"] == 0
        assert len(data["forecast"]) == 3
        assert all(m["confidence"] == "low" for m in data["forecast"])

    def test_months_validated(self, client, token):
        """Test the horizon is bounded."""
        response = client.get("/api/v1/reports/forecast", params={"months": 48}, headers=auth_headers(token))

        assert response.status_code == 422
