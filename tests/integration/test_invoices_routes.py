"""Integration tests for invoice routes."""

from decimal import Decimal

from tests.conftest import auth_headers

ITEMS = [
    {"description": "Design work", "quantity": "2", "unit_price": "500"},
    {"description": "Hosting", "quantity": "1", "unit_price": "100"},
]


def _create_invoice(client, token, **overrides):
    payload = {"issue_date": "2024-06-01", "due_date": "2024-07-01", "items": ITEMS}
    payload.update(overrides)
    return client.post("/api/v1/invoices", json=payload, headers=auth_headers(token))


class TestCreateInvoice:
    """Tests for POST /api/v1/invoices."""

    def test_create_computes_totals(self, client, token):
        """Test totals and numbering of a new draft."""
        response = _create_invoice(client, token)

        assert response.status_code == 201
        data = response.json()
        assert data["invoice_number"] == "INV-0001"
        assert data["status"] == "DRAFT"
        assert Decimal(str(data["subtotal"])) == Decimal("1100.00")
        assert Decimal(str(data["vat_amount"])) == Decimal("187.00")
        assert Decimal(str(data["total"])) == Decimal("1287.00")
        assert [item["description"] for item in data["items"]] == ["Design work", "Hosting"]

    def test_next_number(self, client, token):
        """Test the next number follows the highest existing one."""
        _create_invoice(client, token)

        response = client.get("/api/v1/invoices/next-number", headers=auth_headers(token))

        assert response.json() == {"invoice_number": "INV-0002"}

    def test_items_required(self, client, token):
        """Test an invoice without items is rejected."""
        response = _create_invoice(client, token, items=[])

        assert response.status_code == 400
        assert response.json()["detail"] == "Invoice must have at least one item"

    def test_unknown_client(self, client, token):
        """Test client references are checked."""
        response = _create_invoice(client, token, client_id="missing")

        assert response.status_code == 404


class TestInvoiceLifecycle:
    """Tests for send, pay, cancel, duplicate and delete."""

    def test_send_then_partial_then_full_payment(self, client, token):
        """Test payments accumulate until the invoice is paid."""
        invoice_id = _create_invoice(client, token).json()["id"]

        sent = client.post(f"/api/v1/invoices/{invoice_id}/send", headers=auth_headers(token))
        assert sent.json()["status"] == "SENT"
        assert sent.json()["sent_at"] is not None

        partial = client.post(
            f"/api/v1/invoices/{invoice_id}/mark-paid",
            json={"paid_amount": "287", "paid_date": "2024-06-10", "payment_method": "bank_transfer"},
            headers=auth_headers(token),
        )
        assert partial.json()["status"] == "PARTIALLY_PAID"

        paid = client.post(f"/api/v1/invoices/{invoice_id}/mark-paid", headers=auth_headers(token))
        assert paid.status_code == 200
        assert paid.json()["status"] == "PAID"
        assert Decimal(str(paid.json()["paid_amount"])) == Decimal("1287.00")
        assert paid.json()["payment_method"] == "bank_transfer"

    def test_cannot_pay_draft(self, client, token):
        """Test a draft must be sent first."""
        invoice_id = _create_invoice(client, token).json()["id"]

        response = client.post(f"/api/v1/invoices/{invoice_id}/mark-paid", headers=auth_headers(token))

        assert response.status_code == 400
        assert response.json()["detail"] == "Invoice must be sent before marking as paid"

    def test_cannot_edit_sent(self, client, token):
        """Test only drafts are editable."""
        invoice_id = _create_invoice(client, token).json()["id"]
        client.post(f"/api/v1/invoices/{invoice_id}/send", headers=auth_headers(token))

        response = client.put(
            f"/api/v1/invoices/{invoice_id}", json={"notes": "late change"}, headers=auth_headers(token)
        )

        assert response.status_code == 400

    def test_null_items_rejected(self, client, token):
        """Test a draft update cannot null its items."""
        invoice_id = _create_invoice(client, token).json()["id"]

        response = client.put(
            f"/api/v1/invoices/{invoice_id}", json={"items": None}, headers=auth_headers(token)
        )

        assert response.status_code == 422
        assert len(client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers(token)).json()["items"]) == 2

    def test_cancel_paid_rejected(self, client, token):
        """Test a paid invoice cannot be cancelled."""
        invoice_id = _create_invoice(client, token).json()["id"]
        client.post(f"/api/v1/invoices/{invoice_id}/send", headers=auth_headers(token))
        client.post(f"/api/v1/invoices/{invoice_id}/mark-paid", headers=auth_headers(token))

        response = client.post(f"/api/v1/invoices/{invoice_id}/cancel", headers=auth_headers(token))

        assert response.status_code == 400

    def test_duplicate_creates_draft(self, client, token):
        """Test a copy gets a new number and DRAFT status."""
        invoice_id = _create_invoice(client, token).json()["id"]
        client.post(f"/api/v1/invoices/{invoice_id}/send", headers=auth_headers(token))

        response = client.post(f"/api/v1/invoices/{invoice_id}/duplicate", headers=auth_headers(token))

        assert response.status_code == 201
        assert response.json()["invoice_number"] == "INV-0002"
        assert response.json()["status"] == "DRAFT"
        assert len(response.json()["items"]) == 2

    def test_delete_draft(self, client, token):
        """Test drafts can be deleted."""
        invoice_id = _create_invoice(client, token).json()["id"]

        assert client.delete(f"/api/v1/invoices/{invoice_id}", headers=auth_headers(token)).status_code == 204
        assert client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers(token)).status_code == 404


class TestInvoiceListing:
    """Tests for listing and the summary."""

    def test_filter_by_status(self, client, token):
        """Test the status filter."""
        first = _create_invoice(client, token).json()["id"]
        _create_invoice(client, token)
        client.post(f"/api/v1/invoices/{first}/send", headers=auth_headers(token))

        response = client.get("/api/v1/invoices", params={"status": "SENT"}, headers=auth_headers(token))

        assert [i["id"] for i in response.json()] == [first]

    def test_summary_buckets(self, client, token):
        """Test drafts and overdue invoices are counted separately."""
        _create_invoice(client, token)
        overdue = _create_invoice(client, token, due_date="2024-06-15").json()["id"]
        client.post(f"/api/v1/invoices/{overdue}/send", headers=auth_headers(token))

        data = client.get("/api/v1/invoices/summary", headers=auth_headers(token)).json()

        assert data["draft"]["count"] == 1
        assert data["overdue"]["count"] == 1
        assert data["sent"]["count"] == 0
        assert Decimal(str(data["total_outstanding"])) == Decimal("1287.00")

    def test_scoped_to_business(self, client, token, other_token):
        """Test another business cannot read the invoice."""
        invoice_id = _create_invoice(client, token).json()["id"]

        response = client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers(other_token))

        assert response.status_code == 404
