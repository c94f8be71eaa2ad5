"""Integration tests for transaction routes."""

from datetime import date
from decimal import Decimal

from tests.conftest import auth_headers


def _create(client, token, account_id, **overrides):
    payload = {
        "account_id": account_id,
        "date": "2024-03-10",
        "description": "Office supplies",
        "amount": "-117.00",
    }
    payload.update(overrides)
    return client.post("/api/v1/transactions", json=payload, headers=auth_headers(token))


class TestCreateTransaction:
    """Tests for POST /api/v1/transactions."""

    def test_create_with_vat(self, client, token, sample_account):
        """Test VAT is derived from the business rate."""
        response = _create(client, token, sample_account.id)

        assert response.status_code == 201
        data = response.json()
        assert data["account_name"] == "Main Bank"
        assert Decimal(str(data["vat_amount"])) == Decimal("17.00")
        assert Decimal(str(data["vat_rate"])) == Decimal("17")
        assert data["display_date"] == "2024-03-10"

    def test_create_with_unknown_category(self, client, token, sample_account):
        """Test references are checked against the business."""
        response = _create(client, token, sample_account.id, category_id="missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Category not found"

    def test_create_for_other_business_account(self, client, other_token, sample_account):
        """Test another business cannot post to the account."""
        response = _create(client, other_token, sample_account.id)

        assert response.status_code == 404

    def test_installment_display(self, client, token, sample_account):
        """Test an installment row shows the per-payment amount and shifted date."""
        response = _create(
            client,
            token,
            sample_account.id,
            date="2024-01-15",
            amount="-1200",
            installment_current=3,
            installment_total=12,
            installment_total_amount="1200",
            vat_rate="0",
        )

        data = response.json()
        assert Decimal(str(data["display_amount"])) == Decimal("-100.00")
        assert data["display_date"] == "2024-03-15"
        assert data["first_payment_date"] == "2024-01-15"


class TestListTransactions:
    """Tests for GET /api/v1/transactions."""

    def test_list_paginated(self, client, token, make_transaction):
        """Test the page envelope."""
        for day in range(1, 4):
            make_transaction(-10, date(2024, 4, day), f"Item {day}")

        response = client.get(
            "/api/v1/transactions", params={"limit": 2, "page": 2}, headers=auth_headers(token)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert data["page"] == 2
        assert [t["description"] for t in data["items"]] == ["Item 1"]

    def test_list_date_range(self, client, token, make_transaction):
        """Test the from/to filter."""
        make_transaction(-10, date(2024, 3, 31), "March")
        make_transaction(-10, date(2024, 4, 15), "April")

        response = client.get(
            "/api/v1/transactions",
            params={"from": "2024-04-01", "to": "2024-04-30"},
            headers=auth_headers(token),
        )

        assert [t["description"] for t in response.json()["items"]] == ["April"]

    def test_list_is_scoped(self, client, other_token, make_transaction):
        """Test other businesses see nothing."""
        make_transaction(-10, date(2024, 4, 1))

        response = client.get("/api/v1/transactions", headers=auth_headers(other_token))

        assert response.json()["total"] == 0


class TestEditTransactions:
    """Tests for update, recategorize and delete."""

    def test_update(self, client, token, make_transaction):
        """Test partial updates keep other fields."""
        tx = make_transaction(-50, date(2024, 4, 1), "Lunch")

        response = client.put(
            f"/api/v1/transactions/{tx.id}",
            json={"description": "Team lunch"},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Team lunch"
        assert Decimal(str(response.json()["amount"])) == Decimal("-50.00")

    def test_update_rejects_null_amount(self, client, token, make_transaction):
        """Test an explicit null for a required field fails validation."""
        tx = make_transaction(-50, date(2024, 4, 1), "Lunch")

        response = client.put(
            f"/api/v1/transactions/{tx.id}",
            json={"amount": None},
            headers=auth_headers(token),
        )

        assert response.status_code == 422
        stored = client.get(f"/api/v1/transactions/{tx.id}", headers=auth_headers(token)).json()
        assert Decimal(str(stored["amount"])) == Decimal("-50.00")

    def test_update_rejects_null_vat_mode(self, client, token, make_transaction):
        """Test a null VAT flag cannot switch the VAT calculation."""
        tx = make_transaction(-50, date(2024, 4, 1), "Lunch")

        response = client.put(
            f"/api/v1/transactions/{tx.id}",
            json={"is_vat_included": None, "description": "Dinner"},
            headers=auth_headers(token),
        )

        assert response.status_code == 422

    def test_update_allows_clearing_optional_fields(self, client, token, make_transaction, expense_category):
        """Test nullable references can still be cleared."""
        tx = make_transaction(-50, date(2024, 4, 1), "Lunch", category_id=expense_category.id, notes="x")

        response = client.put(
            f"/api/v1/transactions/{tx.id}",
            json={"category_id": None, "notes": None},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        assert response.json()["category_id"] is None
        assert response.json()["notes"] is None

    def test_patch_category_learns_rule(self, client, token, make_transaction, expense_category):
        """Test recategorizing teaches the suggestion endpoint."""
        tx = make_transaction(-50, date(2024, 4, 1), "ADOBE CLOUD")

        response = client.patch(
            f"/api/v1/transactions/{tx.id}/category",
            json={"category_id": expense_category.id},
            headers=auth_headers(token),
        )
        assert response.status_code == 200
        assert response.json()["category_name"] == "Software"

        suggestion = client.post(
            "/api/v1/transactions/suggest-category",
            json={"description": "Adobe monthly"},
            headers=auth_headers(token),
        )
        assert suggestion.json()["category_id"] == expense_category.id

    def test_delete(self, client, token, make_transaction):
        """Test a deleted transaction is gone."""
        tx = make_transaction(-50, date(2024, 4, 1))

        assert client.delete(f"/api/v1/transactions/{tx.id}", headers=auth_headers(token)).status_code == 204
        assert client.get(f"/api/v1/transactions/{tx.id}", headers=auth_headers(token)).status_code == 404


class TestBulkAndImport:
    """Tests for bulk endpoints and import."""

    def test_bulk_flip_and_delete(self, client, token, make_transaction):
        """Test bulk endpoints report how many rows changed."""
        first = make_transaction(-10, date(2024, 4, 1))
        second = make_transaction(-20, date(2024, 4, 2))
        ids = [first.id, second.id]

        flipped = client.post("/api/v1/transactions/bulk-flip-sign", json={"ids": ids}, headers=auth_headers(token))
        assert flipped.json() == {"count": 2}

        listed = client.get("/api/v1/transactions", params={"type": "income"}, headers=auth_headers(token))
        assert listed.json()["total"] == 2

        deleted = client.post("/api/v1/transactions/bulk-delete", json={"ids": ids}, headers=auth_headers(token))
        assert deleted.json() == {"count": 2}

    def test_bulk_update_rejects_null_date(self, client, token, make_transaction):
        """Test bulk edits cannot blank a required column."""
        tx = make_transaction(-10, date(2024, 4, 1))

        response = client.post(
            "/api/v1/transactions/bulk-update",
            json={"ids": [tx.id], "date": None},
            headers=auth_headers(token),
        )

        assert response.status_code == 422

    def test_bulk_requires_ids(self, client, token):
        """Test an empty id list fails validation."""
        response = client.post("/api/v1/transactions/bulk-delete", json={"ids": []}, headers=auth_headers(token))

        assert response.status_code == 422

    def test_import(self, client, token, sample_account):
        """Test statement rows are imported with categories from slugs."""
        response = client.post(
            "/api/v1/transactions/import",
            json={
                "account_id": sample_account.id,
                "transactions": [
                    {"date": "2024-05-01", "description": "Salary", "amount": "12000", "category_slug": "salary"},
                    {"date": "2024-05-03", "description": "Supermarket", "amount": "-320.50", "category_slug": "groceries"},
                ],
            },
            headers=auth_headers(token),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["imported"] == 2
        assert data["items"][0]["is_recurring"] is True
        assert data["items"][1]["category_slug"] == "groceries"
