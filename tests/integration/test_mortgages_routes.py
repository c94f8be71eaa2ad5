"""Integration tests for mortgage routes."""

from decimal import Decimal

from tests.conftest import auth_headers

TRACK = {
    "track_type": "FIXED",
    "index_type": "NONE",
    "amount": "300000",
    "interest_rate": "4.2",
    "monthly_payment": "1800",
}


def _create_mortgage(client, token, **overrides):
    payload = {"name": "Home", "bank": "Hapoalim", "total_amount": "300000", "tracks": [TRACK]}
    payload.update(overrides)
    return client.post("/api/v1/mortgages", json=payload, headers=auth_headers(token))


class TestMortgagesCrud:
    """Tests for /api/v1/mortgages."""

    def test_requires_auth(self, client):
        """Test anonymous access is rejected."""
        assert client.get("/api/v1/mortgages").status_code == 401

    def test_create_with_tracks(self, client, token):
        """Test a mortgage is created with its tracks and computed fields."""
        response = _create_mortgage(client, token, remaining_amount="240000")

        assert response.status_code == 201
        data = response.json()
        assert data["currency"] == "ILS"
        assert [t["track_type"] for t in data["tracks"]] == ["FIXED"]
        assert Decimal(str(data["tracks_amount"])) == Decimal("300000")
        assert Decimal(str(data["monthly_payment"])) == Decimal("1800")
        assert Decimal(str(data["weighted_interest_rate"])) == Decimal("4.2")
        assert data["paid_off_percent"] == 20

    def test_invalid_track_type(self, client, token):
        """Test unknown track types fail validation."""
        response = _create_mortgage(client, token, tracks=[{**TRACK, "track_type": "BALLOON"}])

        assert response.status_code == 422

    def test_update_and_null_rejected(self, client, token):
        """Test partial updates and required fields."""
        mortgage_id = _create_mortgage(client, token).json()["id"]

        renamed = client.put(
            f"/api/v1/mortgages/{mortgage_id}", json={"name": "Apartment"}, headers=auth_headers(token)
        )
        assert renamed.status_code == 200
        assert renamed.json()["name"] == "Apartment"
        assert renamed.json()["bank"] == "Hapoalim"

        blanked = client.put(
            f"/api/v1/mortgages/{mortgage_id}", json={"total_amount": None}, headers=auth_headers(token)
        )
        assert blanked.status_code == 422

    def test_delete_is_soft(self, client, token):
        """Test deleted mortgages leave the list."""
        mortgage_id = _create_mortgage(client, token).json()["id"]

        response = client.delete(f"/api/v1/mortgages/{mortgage_id}", headers=auth_headers(token))

        assert response.status_code == 204
        assert client.get("/api/v1/mortgages", headers=auth_headers(token)).json() == []
        assert client.get(f"/api/v1/mortgages/{mortgage_id}", headers=auth_headers(token)).json()["is_active"] is False

    def test_other_business_not_found(self, client, token, other_token):
        """Test mortgages are scoped to the business."""
        mortgage_id = _create_mortgage(client, token).json()["id"]

        response = client.get(f"/api/v1/mortgages/{mortgage_id}", headers=auth_headers(other_token))

        assert response.status_code == 404
        assert response.json()["detail"] == "Mortgage not found"

    def test_summary(self, client, token):
        """Test totals across mortgages."""
        _create_mortgage(client, token)
        _create_mortgage(client, token, name="Office", total_amount="100000", tracks=[], total_monthly="700")

        data = client.get("/api/v1/mortgages/summary", headers=auth_headers(token)).json()

        assert data["mortgage_count"] == 2
        assert data["track_count"] == 1
        assert Decimal(str(data["total_amount"])) == Decimal("400000")
        assert Decimal(str(data["total_monthly"])) == Decimal("2500")


class TestMortgageTracksRoutes:
    """Tests for /api/v1/mortgages/{id}/tracks."""

    def test_add_replace_remove(self, client, token):
        """Test the track lifecycle."""
        mortgage_id = _create_mortgage(client, token, tracks=[]).json()["id"]

        added = client.post(
            f"/api/v1/mortgages/{mortgage_id}/tracks",
            json={**TRACK, "name": "Fixed", "notes": "10 years"},
            headers=auth_headers(token),
        )
        assert added.status_code == 201
        track_id = added.json()["id"]

        replaced = client.put(
            f"/api/v1/mortgages/{mortgage_id}/tracks/{track_id}",
            json={"track_type": "PRIME", "amount": "290000", "interest_rate": "5.1"},
            headers=auth_headers(token),
        )
        assert replaced.status_code == 200
        assert replaced.json()["track_type"] == "PRIME"
        assert replaced.json()["notes"] is None

        removed = client.delete(f"/api/v1/mortgages/{mortgage_id}/tracks/{track_id}", headers=auth_headers(token))
        assert removed.status_code == 204
        assert client.get(f"/api/v1/mortgages/{mortgage_id}", headers=auth_headers(token)).json()["tracks"] == []

    def test_unknown_track(self, client, token):
        """Test a missing track is a 404."""
        mortgage_id = _create_mortgage(client, token).json()["id"]

        response = client.delete(f"/api/v1/mortgages/{mortgage_id}/tracks/missing", headers=auth_headers(token))

        assert response.status_code == 404
        assert response.json()["detail"] == "Mortgage track not found"

    def test_track_on_other_business_mortgage(self, client, token, other_token):
        """Test tracks cannot be added across businesses."""
        mortgage_id = _create_mortgage(client, token).json()["id"]

        response = client.post(
            f"/api/v1/mortgages/{mortgage_id}/tracks", json=TRACK, headers=auth_headers(other_token)
        )

        assert response.status_code == 404
