"""
Tests para los libros de movimientos USD y MXN

Cubren:
- Normalización de signo y validaciones de monto/límite
- Totales del listado y resumen realizado/pendiente/proyectado
- Adjuntos y facturas MXN (solo el dueño)
"""

from decimal import Decimal

import pytest


# ===== FIXTURES =====

@pytest.fixture
def entry_data():
    return {
        "amount": "1500.00",
        "concept": "Venta de mayoreo",
        "bank_account": "BBVA 1234",
        "entry_type": "income",
        "transaction_date": "2025-03-10",
        "area": "VENTAS",
        "subarea": "VENTAS MAYOREO",
    }


@pytest.fixture
def make_entry(client, auth_headers, entry_data):
    def _make(prefix="/ledger", headers=None, **overrides):
        response = client.post(f"{prefix}/", json={**entry_data, **overrides}, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


# ===== TESTS DE MOVIMIENTOS =====

class TestLedgerEntries:

    def test_create_entry(self, make_entry):
        entry = make_entry()
        assert entry["internal_id"].startswith("TXN-")
        assert entry["currency"] == "USD"
        assert entry["username"] == "tester"
        assert Decimal(entry["amount"]) == Decimal("1500")

    def test_expense_is_stored_negative(self, make_entry):
        entry = make_entry(amount="250", entry_type="expense")
        assert Decimal(entry["amount"]) == Decimal("-250")

    def test_income_sign_is_normalized(self, make_entry):
        entry = make_entry(amount="-80")
        assert Decimal(entry["amount"]) == Decimal("80")

    def test_zero_amount_rejected(self, client, auth_headers, entry_data):
        entry_data["amount"] = "0"
        assert client.post("/ledger/", json=entry_data, headers=auth_headers).status_code == 400

    def test_blank_concept_rejected(self, client, auth_headers, entry_data):
        entry_data["concept"] = "   "
        assert client.post("/ledger/", json=entry_data, headers=auth_headers).status_code == 422

    def test_update_switches_sign(self, client, auth_headers, make_entry):
        entry = make_entry()
        response = client.put(f"/ledger/{entry['id']}", json={"entry_type": "expense"}, headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("-1500")

    def test_update_blank_concept(self, client, auth_headers, make_entry):
        entry = make_entry()
        response = client.put(f"/ledger/{entry['id']}", json={"concept": "  "}, headers=auth_headers)
        assert response.status_code == 400

    def test_entries_are_shared(self, client, other_headers, make_entry):
        entry = make_entry()
        assert client.get(f"/ledger/{entry['id']}", headers=other_headers).status_code == 200

    def test_delete_entry(self, client, auth_headers, make_entry):
        entry = make_entry()
        assert client.delete(f"/ledger/{entry['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/ledger/{entry['id']}", headers=auth_headers).status_code == 404

    def test_currencies_are_separate(self, client, auth_headers, make_entry):
        entry = make_entry(prefix="/ledger-mxn")
        assert entry["internal_id"].startswith("MXN-")
        assert entry["currency"] == "MXN"
        assert client.get(f"/ledger/{entry['id']}", headers=auth_headers).status_code == 404


# ===== TESTS DE LISTADO Y RESUMEN =====

class TestLedgerListing:

    def test_list_with_totals(self, client, auth_headers, make_entry):
        make_entry(amount="1000")
        make_entry(amount="300", entry_type="expense", concept="Compra de barro")
        make_entry(amount="50", bank_account="Caja chica")

        data = client.get("/ledger/", params={"limit": 2}, headers=auth_headers).json()
        assert len(data["entries"]) == 2
        assert data["has_more"] is True
        assert Decimal(data["summary"]["total_income"]) == Decimal("1050")
        assert Decimal(data["summary"]["total_expenses"]) == Decimal("300")
        assert Decimal(data["summary"]["net"]) == Decimal("750")
        assert data["summary"]["count"] == 3

        data = client.get("/ledger/", params={"search": "barro"}, headers=auth_headers).json()
        assert [e["concept"] for e in data["entries"]] == ["Compra de barro"]

        data = client.get("/ledger/", params={"bank_account": "Caja chica"}, headers=auth_headers).json()
        assert data["summary"]["count"] == 1

    def test_limit_out_of_range(self, client, auth_headers):
        assert client.get("/ledger/", params={"limit": 0}, headers=auth_headers).status_code == 400
        assert client.get("/ledger/", params={"limit": 1001}, headers=auth_headers).status_code == 400

    def test_date_range(self, client, auth_headers, make_entry):
        make_entry(transaction_date="2025-01-15")
        make_entry(transaction_date="2025-02-15")
        data = client.get("/ledger/", params={"start_date": "2025-02-01", "end_date": "2025-02-28"},
                          headers=auth_headers).json()
        assert [e["transaction_date"] for e in data["entries"]] == ["2025-02-15"]

    def test_summary_and_realize(self, client, auth_headers, make_entry):
        make_entry(amount="1000")
        make_entry(amount="300", entry_type="expense")
        pending = make_entry(amount="200", por_realizar=True)

        data = client.get("/ledger/summary", headers=auth_headers).json()
        assert Decimal(data["realized"]["net"]) == Decimal("700")
        assert Decimal(data["pending"]["net"]) == Decimal("200")
        assert Decimal(data["projected"]["net"]) == Decimal("900")
        assert data["projected"]["count"] == 3

        response = client.put(f"/ledger/{pending['id']}/realize", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["entry"]["por_realizar"] is False
        assert client.put(f"/ledger/{pending['id']}/realize", headers=auth_headers).status_code == 400

        data = client.get("/ledger/summary", headers=auth_headers).json()
        assert Decimal(data["realized"]["net"]) == Decimal("900")
        assert data["pending"]["count"] == 0


# ===== TESTS DE ADJUNTOS =====

class TestLedgerAttachments:

    def test_attachments(self, client, auth_headers, make_entry):
        entry = make_entry(attachments=[{"file_name": "ticket.pdf", "file_url": "https://files.example.com/t.pdf"}])
        assert len(entry["attachments"]) == 1

        response = client.post(f"/ledger/{entry['id']}/attachments", json={
            "file_name": "deposito.png", "file_url": "https://files.example.com/d.png", "file_size": 512
        }, headers=auth_headers)
        assert response.status_code == 201
        attachment_id = response.json()["id"]

        assert len(client.get(f"/ledger/{entry['id']}/attachments", headers=auth_headers).json()) == 2
        assert client.delete(f"/ledger/attachments/{attachment_id}", headers=auth_headers).status_code == 200
        assert client.delete(f"/ledger/attachments/{attachment_id}", headers=auth_headers).status_code == 404


# ===== TESTS DE FACTURAS MXN =====

class TestFacturas:

    factura = {
        "folio": "A-100",
        "uuid": "6f1c2b4e-8d3a-4c1f-9a7e-2b5d0e9c1a11",
        "rfc_emisor": "CBA010101AB1",
        "total": "1160",
        "subtotal": "1000",
        "iva": "160",
        "file_type": "xml",
    }

    def test_create_and_list(self, client, auth_headers, make_entry):
        entry = make_entry(prefix="/ledger-mxn")
        response = client.post(f"/ledger-mxn/{entry['id']}/facturas", json=self.factura, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["uuid"] == self.factura["uuid"].upper()
        assert response.json()["file_type"] == "xml"

        facturas = client.get(f"/ledger-mxn/{entry['id']}/facturas", headers=auth_headers).json()
        assert len(facturas) == 1

    def test_duplicate_uuid(self, client, auth_headers, make_entry):
        first = make_entry(prefix="/ledger-mxn")
        second = make_entry(prefix="/ledger-mxn")
        client.post(f"/ledger-mxn/{first['id']}/facturas", json=self.factura, headers=auth_headers)
        response = client.post(f"/ledger-mxn/{second['id']}/facturas", json=self.factura, headers=auth_headers)
        assert response.status_code == 409

    def test_only_owner(self, client, auth_headers, other_headers, make_entry):
        entry = make_entry(prefix="/ledger-mxn")
        factura = client.post(f"/ledger-mxn/{entry['id']}/facturas", json=self.factura,
                              headers=auth_headers).json()

        assert client.get(f"/ledger-mxn/{entry['id']}/facturas", headers=other_headers).status_code == 403
        assert client.put(f"/ledger-mxn/facturas/{factura['id']}", json={"folio": "B-1"},
                          headers=other_headers).status_code == 403
        assert client.delete(f"/ledger-mxn/facturas/{factura['id']}", headers=other_headers).status_code == 403

    def test_update_and_delete(self, client, auth_headers, make_entry):
        entry = make_entry(prefix="/ledger-mxn")
        factura = client.post(f"/ledger-mxn/{entry['id']}/facturas", json=self.factura,
                              headers=auth_headers).json()

        response = client.put(f"/ledger-mxn/facturas/{factura['id']}", json={"folio": "A-101"},
                              headers=auth_headers)
        assert response.json()["folio"] == "A-101"
        assert client.delete(f"/ledger-mxn/facturas/{factura['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/ledger-mxn/{entry['id']}/facturas", headers=auth_headers).json() == []

    def test_missing_entry(self, client, auth_headers):
        assert client.post("/ledger-mxn/999/facturas", json=self.factura, headers=auth_headers).status_code == 404
