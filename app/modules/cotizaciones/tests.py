"""
Tests para el módulo de Cotizaciones
"""

from decimal import Decimal

import pytest


@pytest.fixture
def make_cotizacion(client, auth_headers):
    def _make(**overrides):
        payload = {
            "amount": "1200",
            "concept": "Cotización vajilla hotel",
            "bank_account": "BBVA 1234",
            "entry_type": "income",
            "transaction_date": "2025-04-02",
            "currency": "USD",
            **overrides,
        }
        response = client.post("/cotizaciones/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


class TestCotizaciones:

    def test_create_defaults(self, client, auth_headers, make_cotizacion):
        entry = make_cotizacion()
        assert entry["internal_id"].startswith("COT-")
        assert entry["currency"] == "USD"
        assert entry["username"] == "tester"

    def test_expense_sign(self, make_cotizacion):
        entry = make_cotizacion(amount="400", entry_type="expense", currency="MXN")
        assert Decimal(entry["amount"]) == Decimal("-400")
        assert entry["currency"] == "MXN"

    def test_invalid_currency(self, client, auth_headers):
        response = client.post("/cotizaciones/", json={
            "amount": "1", "concept": "X", "bank_account": "Y", "entry_type": "income",
            "transaction_date": "2025-04-02", "currency": "EUR"
        }, headers=auth_headers)
        assert response.status_code == 422

    def test_zero_amount(self, client, auth_headers):
        response = client.post("/cotizaciones/", json={
            "amount": "0", "concept": "X", "bank_account": "Y", "entry_type": "income",
            "transaction_date": "2025-04-02"
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_list_grouped_by_currency(self, client, auth_headers, make_cotizacion):
        make_cotizacion(amount="1000")
        make_cotizacion(amount="200", entry_type="expense")
        make_cotizacion(amount="5000", currency="MXN")

        data = client.get("/cotizaciones/", headers=auth_headers).json()
        assert len(data["entries"]) == 3
        assert data["has_more"] is False
        by_currency = {row["currency"]: row for row in data["summary"]}
        assert Decimal(by_currency["USD"]["net"]) == Decimal("800")
        assert by_currency["MXN"]["count"] == 1

        data = client.get("/cotizaciones/", params={"currency": "MXN"}, headers=auth_headers).json()
        assert [row["currency"] for row in data["summary"]] == ["MXN"]

    def test_summary(self, client, auth_headers, make_cotizacion):
        make_cotizacion(amount="1000")
        make_cotizacion(amount="300", entry_type="expense", currency="MXN")

        data = client.get("/cotizaciones/summary", headers=auth_headers).json()
        assert data["total_entries"] == 2
        assert Decimal(data["net_usd"]) == Decimal("1000")
        assert Decimal(data["net_mxn"]) == Decimal("-300")

    def test_limit_out_of_range(self, client, auth_headers):
        assert client.get("/cotizaciones/", params={"limit": 5000}, headers=auth_headers).status_code == 400

    def test_update(self, client, auth_headers, make_cotizacion):
        entry = make_cotizacion()
        response = client.put(f"/cotizaciones/{entry['id']}", json={
            "entry_type": "expense", "currency": "MXN"
        }, headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("-1200")
        assert response.json()["currency"] == "MXN"

        response = client.put(f"/cotizaciones/{entry['id']}", json={"concept": "  "}, headers=auth_headers)
        assert response.status_code == 400

    def test_delete(self, client, auth_headers, make_cotizacion):
        entry = make_cotizacion()
        assert client.delete(f"/cotizaciones/{entry['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/cotizaciones/{entry['id']}", headers=auth_headers).status_code == 404
