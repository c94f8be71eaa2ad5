"""Integration tests for account routes."""

from datetime import date
from decimal import Decimal

from tests.conftest import auth_headers


class TestAccountsCrud:
    """Tests for /api/v1/accounts."""

    def test_list_requires_auth(self, client):
        """Test anonymous access is rejected."""
        assert client.get("/api/v1/accounts").status_code == 401

    def test_create_and_list(self, client, token):
        """Test a created account is listed with its balance."""
        response = client.post(
            "/api/v1/accounts",
            json={"name": "Wallet", "type": "CASH", "balance": "250.00", "balance_date": "2024-01-01"},
            headers=auth_headers(token),
        )

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Wallet"
        assert Decimal(str(created["calculated_balance"])) == Decimal("250.00")

        listed = client.get("/api/v1/accounts", headers=auth_headers(token)).json()
        assert [a["id"] for a in listed] == [created["id"]]

    def test_invalid_type_rejected(self, client, token):
        """Test unknown account types fail validation."""
        response = client.post(
            "/api/v1/accounts",
            json={"name": "Odd", "type": "CRYPTO"},
            headers=auth_headers(token),
        )

        assert response.status_code == 422

    def test_credit_card_linked_to_bank(self, client, token, sample_account):
        """Test a card may be linked to a bank account only."""
        card = client.post(
            "/api/v1/accounts",
            json={"name": "Visa", "type": "CREDIT_CARD", "linked_bank_account_id": sample_account.id},
            headers=auth_headers(token),
        )
        assert card.status_code == 201
        assert Decimal(str(card.json()["calculated_balance"])) == Decimal("0")

        bad = client.post(
            "/api/v1/accounts",
            json={"name": "Amex", "type": "CREDIT_CARD", "linked_bank_account_id": card.json()["id"]},
            headers=auth_headers(token),
        )
        assert bad.status_code == 400
        assert bad.json()["detail"] == "Linked account must be a bank account"

    def test_update(self, client, token, sample_account):
        """Test partial updates."""
        response = client.put(
            f"/api/v1/accounts/{sample_account.id}",
            json={"name": "Renamed"},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["type"] == "BANK"

    def test_delete_is_soft(self, client, token, sample_account):
        """Test deleted accounts are hidden unless requested."""
        response = client.delete(f"/api/v1/accounts/{sample_account.id}", headers=auth_headers(token))
        assert response.status_code == 204

        assert client.get("/api/v1/accounts", headers=auth_headers(token)).json() == []
        everything = client.get(
            "/api/v1/accounts", params={"include_inactive": True}, headers=auth_headers(token)
        ).json()
        assert everything[0]["is_active"] is False

    def test_other_business_not_found(self, client, other_token, sample_account):
        """Test accounts are scoped to the business."""
        response = client.get(f"/api/v1/accounts/{sample_account.id}", headers=auth_headers(other_token))

        assert response.status_code == 404
        assert response.json()["detail"] == "Account not found"


class TestAccountBalance:
    """Tests for GET /api/v1/accounts/{id}/balance."""

    def test_balance_as_of(self, client, token, sample_account, make_transaction):
        """Test the balance is rebuilt from the snapshot."""
        make_transaction(400, date(2024, 2, 1))
        make_transaction(-150, date(2024, 3, 1))

        full = client.get(f"/api/v1/accounts/{sample_account.id}/balance", headers=auth_headers(token))
        capped = client.get(
            f"/api/v1/accounts/{sample_account.id}/balance",
            params={"as_of": "2024-02-15"},
            headers=auth_headers(token),
        )

        assert Decimal(str(full.json()["calculated_balance"])) == Decimal("1250.00")
        assert Decimal(str(capped.json()["calculated_balance"])) == Decimal("1400.00")
        assert capped.json()["as_of"] == "2024-02-15"


class TestAccountNullUpdates:
    """Tests for explicit nulls on PUT /api/v1/accounts/{id}."""

    def test_null_name_rejected(self, client, token, sample_account):
        """Test a required column cannot be blanked."""
        response = client.put(
            f"/api/v1/accounts/{sample_account.id}",
            json={"name": None},
            headers=auth_headers(token),
        )

        assert response.status_code == 422
        fetched = client.get(f"/api/v1/accounts/{sample_account.id}", headers=auth_headers(token))
        assert fetched.json()["name"] == "Main Bank"

    def test_null_notes_allowed(self, client, token, sample_account):
        """Test optional columns can be cleared."""
        response = client.put(
            f"/api/v1/accounts/{sample_account.id}",
            json={"notes": None},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        assert response.json()["notes"] is None
