"""
Tests para el módulo de Ventas

Cubren:
- Cotizaciones con totales por partida
- Pedidos creados desde cotizaciones
- Apartado automático y manual de inventario (apartados <= quantity)
- Entrega, cancelación y estados finales
- Pagos ligados a ingresos del libro MXN
"""

from decimal import Decimal

import pytest


# ===== FIXTURES =====

@pytest.fixture
def taza(make_product):
    return make_product()


@pytest.fixture
def make_quotation(client, auth_headers, catalog, taza):
    def _make(quantity=3, unit_price="100", items=None, **extra):
        payload = {
            "customer_name": "Tienda Lupita",
            "customer_email": "compras@lupita.mx",
            "terms": "Pago a 15 días",
            "items": items or [{
                "product_id": taza["id"],
                "esmalte_color_id": catalog["azul_id"],
                "quantity": quantity,
                "unit_price": unit_price,
            }],
            **extra,
        }
        response = client.post("/ventas/quotations/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_pedido(client, auth_headers, make_quotation):
    def _make(**kwargs):
        quotation = make_quotation(**kwargs)
        response = client.post("/ventas/pedidos/", json={"quotation_id": quotation["id"]}, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


def set_status(client, headers, pedido_id, new_status):
    return client.patch(f"/ventas/pedidos/{pedido_id}/status", json={"status": new_status}, headers=headers)


def inventory_row(client, headers, inventory_id):
    rows = client.get("/produccion/inventory", params={"include_empty": True}, headers=headers).json()
    return next(r for r in rows if r["id"] == inventory_id)


# ===== TESTS DE COTIZACIONES =====

class TestQuotations:

    def test_create_quotation_totals(self, make_quotation, catalog):
        quotation = make_quotation(quantity=2, items=None)
        assert quotation["quotation_number"].startswith("COT-")
        assert quotation["status"] == "DRAFT"
        item = quotation["items"][0]
        assert item["product_name"] == "Taza Clásica"
        assert item["esmalte_color"] == "AZUL"
        assert Decimal(item["tax_percentage"]) == Decimal("16")
        assert Decimal(quotation["subtotal"]) == Decimal("200")
        assert Decimal(quotation["tax_amount"]) == Decimal("32")
        assert Decimal(quotation["total"]) == Decimal("232")

    def test_discount_and_custom_tax(self, make_quotation, taza):
        quotation = make_quotation(items=[{
            "product_id": taza["id"], "quantity": 2, "unit_price": "100",
            "discount_percentage": "10", "tax_percentage": "0"
        }])
        assert Decimal(quotation["subtotal"]) == Decimal("180")
        assert Decimal(quotation["total"]) == Decimal("180")

    def test_sequential_numbers(self, make_quotation):
        first = make_quotation()["quotation_number"]
        second = make_quotation()["quotation_number"]
        assert int(second.rsplit("-", 1)[1]) == int(first.rsplit("-", 1)[1]) + 1

    def test_unknown_product(self, client, auth_headers):
        response = client.post("/ventas/quotations/", json={
            "customer_name": "X", "items": [{"product_id": 999, "quantity": 1, "unit_price": "1"}]
        }, headers=auth_headers)
        assert response.status_code == 404

    def test_requires_items(self, client, auth_headers):
        response = client.post("/ventas/quotations/", json={"customer_name": "X", "items": []},
                               headers=auth_headers)
        assert response.status_code == 422

    def test_update_replaces_items(self, client, auth_headers, make_quotation, taza):
        quotation = make_quotation()
        response = client.put(f"/ventas/quotations/{quotation['id']}", json={
            "customer_name": "Tienda Lupita",
            "status": "SENT",
            "items": [{"product_id": taza["id"], "quantity": 1, "unit_price": "50", "tax_percentage": "0"}]
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "SENT"
        assert len(data["items"]) == 1
        assert Decimal(data["total"]) == Decimal("50")

    def test_filter_by_status(self, client, auth_headers, make_quotation):
        make_quotation()
        make_quotation(status="ACCEPTED")
        response = client.get("/ventas/quotations/", params={"status": "ACCEPTED"}, headers=auth_headers)
        assert [q["status"] for q in response.json()] == ["ACCEPTED"]

    def test_delete_quotation_with_pedido(self, client, auth_headers, make_pedido):
        pedido = make_pedido()
        response = client.delete(f"/ventas/quotations/{pedido['quotation_id']}", headers=auth_headers)
        assert response.status_code == 409


# ===== TESTS DE PEDIDOS =====

class TestPedidos:

    def test_create_from_quotation(self, make_pedido):
        pedido = make_pedido()
        assert pedido["pedido_number"].startswith("PED-")
        assert pedido["status"] == "PENDING"
        assert pedido["customer_name"] == "Tienda Lupita"
        assert pedido["terms"] == "Pago a 15 días"
        assert pedido["payment_status"] == "unpaid"
        assert Decimal(pedido["amount_remaining"]) == Decimal(pedido["total"])
        assert pedido["items"][0]["quantity_allocated"] == 0

    def test_create_from_missing_quotation(self, client, auth_headers):
        response = client.post("/ventas/pedidos/", json={"quotation_id": 999}, headers=auth_headers)
        assert response.status_code == 404

    def test_confirm_allocates_inventory(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)

        response = set_status(client, auth_headers, pedido["id"], "CONFIRMED")
        assert response.status_code == 200
        data = response.json()
        assert data["shortfalls"] == []
        assert data["pedido"]["items"][0]["quantity_allocated"] == 3

        inventory = inventory_row(client, auth_headers, row["id"])
        assert inventory["apartados"] == 3
        assert inventory["disponibles"] == 2

    def test_confirm_reports_shortfall(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 2)
        pedido = make_pedido(quantity=3)

        data = set_status(client, auth_headers, pedido["id"], "CONFIRMED").json()
        assert data["shortfalls"][0]["missing"] == 1
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 2

    def test_other_color_not_allocated(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        add_esmaltado(taza["id"], catalog["verde_id"], 5)
        pedido = make_pedido(quantity=1)
        data = set_status(client, auth_headers, pedido["id"], "CONFIRMED").json()
        assert data["shortfalls"][0]["allocated"] == 0

    def test_two_pedidos_never_overallocate(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 4)
        first = make_pedido(quantity=3)
        second = make_pedido(quantity=3)

        set_status(client, auth_headers, first["id"], "CONFIRMED")
        data = set_status(client, auth_headers, second["id"], "CONFIRMED").json()
        assert data["shortfalls"][0]["allocated"] == 1

        inventory = inventory_row(client, auth_headers, row["id"])
        assert inventory["apartados"] == 4
        assert inventory["disponibles"] == 0

    def test_cancel_releases(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")

        response = set_status(client, auth_headers, pedido["id"], "CANCELLED")
        assert response.status_code == 200
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 0

    def test_reconfirm_after_cancel_does_not_allocate(self, client, auth_headers, catalog, taza, add_esmaltado,
                                                      make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CANCELLED")
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 0

    def test_deliver_consumes_inventory(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")

        data = set_status(client, auth_headers, pedido["id"], "DELIVERED").json()
        assert data["pedido"]["actual_delivery_date"] is not None

        inventory = inventory_row(client, auth_headers, row["id"])
        assert (inventory["quantity"], inventory["apartados"], inventory["vendidos"]) == (2, 0, 0)

        set_status(client, auth_headers, pedido["id"], "ENTREGADO_Y_PAGADO")
        inventory = inventory_row(client, auth_headers, row["id"])
        assert (inventory["quantity"], inventory["vendidos"]) == (2, 3)

        movements = client.get("/produccion/inventory/movements", params={"product_id": taza["id"]},
                               headers=auth_headers).json()
        assert movements[0]["movement_type"] == "VENTA"
        assert movements[0]["reference"] == pedido["pedido_number"]

    def test_delivered_transitions(self, client, auth_headers, make_pedido):
        pedido = make_pedido()
        set_status(client, auth_headers, pedido["id"], "DELIVERED")
        assert set_status(client, auth_headers, pedido["id"], "CANCELLED").status_code == 409
        assert set_status(client, auth_headers, pedido["id"], "PENDING").status_code == 409

    def test_entregado_y_pagado_is_final(self, client, auth_headers, make_pedido):
        pedido = make_pedido()
        set_status(client, auth_headers, pedido["id"], "ENTREGADO_Y_PAGADO")
        assert set_status(client, auth_headers, pedido["id"], "PENDING").status_code == 409
        assert client.delete(f"/ventas/pedidos/{pedido['id']}", headers=auth_headers).status_code == 409

    def test_delete_releases(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")

        assert client.delete(f"/ventas/pedidos/{pedido['id']}", headers=auth_headers).status_code == 200
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 0
        assert client.get(f"/ventas/pedidos/{pedido['id']}", headers=auth_headers).status_code == 404

    def test_embalaje_items(self, client, auth_headers, make_product, make_pedido):
        caja = make_product(name="Caja", category="EMBALAJE")
        client.post("/embalaje/inventory/add", json={"items": [{"product_id": caja["id"], "quantity": 10}]},
                    headers=auth_headers)
        pedido = make_pedido(items=[{"product_id": caja["id"], "quantity": 4, "unit_price": "5"}])
        assert pedido["items"][0]["product_category"] == "EMBALAJE"

        data = set_status(client, auth_headers, pedido["id"], "CONFIRMED").json()
        assert data["shortfalls"] == []
        allocations = client.get(f"/ventas/pedidos/{pedido['id']}/embalaje-allocations", headers=auth_headers).json()
        assert sum(a["quantity_allocated"] for a in allocations) == 4

        set_status(client, auth_headers, pedido["id"], "ENTREGADO_Y_PAGADO")
        row = client.get("/embalaje/inventory", headers=auth_headers).json()[0]
        assert (row["quantity"], row["apartados"], row["vendidos"]) == (6, 0, 4)


# ===== TESTS DE APARTADO MANUAL =====

class TestManualAllocation:

    def test_availability(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        availability = client.get(f"/ventas/pedidos/{pedido['id']}/inventory", headers=auth_headers).json()
        assert availability[0]["still_needed"] == 3
        assert availability[0]["available_inventory"][0]["inventory_id"] == row["id"]

    def test_availability_totals_and_shortfall(self, client, auth_headers, catalog, taza, add_esmaltado,
                                               make_pedido):
        add_esmaltado(taza["id"], catalog["azul_id"], 5)
        first = make_pedido(quantity=3)
        set_status(client, auth_headers, first["id"], "CONFIRMED")
        second = make_pedido(quantity=4)

        item = client.get(f"/ventas/pedidos/{second['id']}/inventory", headers=auth_headers).json()[0]
        assert (item["total_cant"], item["total_apartados"], item["total_disponibles"]) == (5, 3, 2)
        assert item["still_needed"] == 4
        assert item["shortfall"] == 2

        covered = client.get(f"/ventas/pedidos/{first['id']}/inventory", headers=auth_headers).json()[0]
        assert (covered["still_needed"], covered["shortfall"]) == (0, 0)

    def test_allocate_and_release(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        item_id = pedido["items"][0]["id"]

        response = client.post("/ventas/pedidos/allocations", json={
            "pedido_item_id": item_id, "inventory_id": row["id"], "quantity": 2
        }, headers=auth_headers)
        assert response.status_code == 201
        allocation_id = response.json()["id"]
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 2

        response = client.delete(f"/ventas/pedidos/allocations/{allocation_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["quantity_released"] == 2
        assert inventory_row(client, auth_headers, row["id"])["apartados"] == 0

    def test_cannot_allocate_more_than_needed(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        response = client.post("/ventas/pedidos/allocations", json={
            "pedido_item_id": pedido["items"][0]["id"], "inventory_id": row["id"], "quantity": 4
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_cannot_allocate_more_than_available(self, client, auth_headers, catalog, taza, add_esmaltado,
                                                 make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 2)
        pedido = make_pedido(quantity=3)
        response = client.post("/ventas/pedidos/allocations", json={
            "pedido_item_id": pedido["items"][0]["id"], "inventory_id": row["id"], "quantity": 3
        }, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["missing"] == 1

    def test_wrong_color_rejected(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["verde_id"], 5)
        pedido = make_pedido(quantity=1)
        response = client.post("/ventas/pedidos/allocations", json={
            "pedido_item_id": pedido["items"][0]["id"], "inventory_id": row["id"], "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_closed_pedido_rejects(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=1)
        set_status(client, auth_headers, pedido["id"], "CANCELLED")
        response = client.post("/ventas/pedidos/allocations", json={
            "pedido_item_id": pedido["items"][0]["id"], "inventory_id": row["id"], "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_adjust_below_apartados(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        add_esmaltado(taza["id"], catalog["azul_id"], 5)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")
        response = client.post("/produccion/inventory/adjust", json={
            "product_id": taza["id"], "stage": "ESMALTADO", "esmalte_color_id": catalog["azul_id"], "quantity": 2
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_merma_cannot_touch_apartados(self, client, auth_headers, catalog, taza, add_esmaltado, make_pedido):
        add_esmaltado(taza["id"], catalog["azul_id"], 3)
        pedido = make_pedido(quantity=3)
        set_status(client, auth_headers, pedido["id"], "CONFIRMED")
        response = client.post("/produccion/inventory/merma", json={
            "product_id": taza["id"], "stage": "ESMALTADO", "esmalte_color_id": catalog["azul_id"], "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 400


# ===== TESTS DE PAGOS =====

@pytest.fixture
def make_income(client, auth_headers):
    def _make(amount="100", area="VENTAS", subarea="VENTAS MAYOREO", entry_type="income"):
        response = client.post("/ledger-mxn/", json={
            "amount": amount,
            "concept": "Depósito cliente",
            "bank_account": "BBVA 1234",
            "entry_type": entry_type,
            "transaction_date": "2025-03-01",
            "area": area,
            "subarea": subarea,
        }, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


class TestPayments:

    def test_attach_and_detach(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido(quantity=1, unit_price="200")
        entry = make_income(amount="100")

        available = client.get("/ventas/pedidos/payments/available", headers=auth_headers).json()
        assert [e["id"] for e in available] == [entry["id"]]

        response = client.post(f"/ventas/pedidos/{pedido['id']}/payments",
                               json={"ledger_entry_id": entry["id"]}, headers=auth_headers)
        assert response.status_code == 201
        payment_id = response.json()["id"]
        assert Decimal(response.json()["amount"]) == Decimal("100")

        summary = client.get(f"/ventas/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert summary["payment_status"] == "partial"
        assert summary["payment_count"] == 1
        assert Decimal(summary["amount_remaining"]) == Decimal("132")
        assert client.get("/ventas/pedidos/payments/available", headers=auth_headers).json() == []

        assert client.delete(f"/ventas/pedidos/payments/{payment_id}", headers=auth_headers).status_code == 200
        summary = client.get(f"/ventas/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert summary["payment_status"] == "unpaid"

    def test_fully_paid(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido(quantity=1, unit_price="100")
        for amount in ("16", "100"):
            entry = make_income(amount=amount)
            client.post(f"/ventas/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                        headers=auth_headers)
        payments = client.get(f"/ventas/pedidos/{pedido['id']}/payments", headers=auth_headers).json()
        assert Decimal(payments["total_paid"]) == Decimal("116")
        assert client.get(f"/ventas/pedidos/{pedido['id']}", headers=auth_headers).json()["payment_status"] == "paid"

    def test_entry_attached_once(self, client, auth_headers, make_pedido, make_income):
        first = make_pedido()
        second = make_pedido()
        entry = make_income()
        client.post(f"/ventas/pedidos/{first['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)
        response = client.post(f"/ventas/pedidos/{second['id']}/payments", json={"ledger_entry_id": entry["id"]},
                               headers=auth_headers)
        assert response.status_code == 409

    def test_wrong_area_or_type(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido()
        other_area = make_income(subarea="VENTAS MENUDEO")
        expense = make_income(entry_type="expense")
        for entry in (other_area, expense):
            response = client.post(f"/ventas/pedidos/{pedido['id']}/payments",
                                   json={"ledger_entry_id": entry["id"]}, headers=auth_headers)
            assert response.status_code == 400

    def test_attached_entry_cannot_be_deleted(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido()
        entry = make_income()
        client.post(f"/ventas/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)
        assert client.delete(f"/ledger-mxn/{entry['id']}", headers=auth_headers).status_code == 409

    def test_attached_entry_edit_recalculates_pedido(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido(quantity=1, unit_price="100")
        entry = make_income(amount="116")
        client.post(f"/ventas/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)
        assert client.get(f"/ventas/pedidos/{pedido['id']}", headers=auth_headers).json()["payment_status"] == "paid"

        response = client.put(f"/ledger-mxn/{entry['id']}", json={"amount": "10"}, headers=auth_headers)
        assert response.status_code == 200

        payments = client.get(f"/ventas/pedidos/{pedido['id']}/payments", headers=auth_headers).json()
        summary = client.get(f"/ventas/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert Decimal(payments["total_paid"]) == Decimal("10")
        assert Decimal(summary["amount_paid"]) == Decimal("10")
        assert Decimal(summary["amount_remaining"]) == Decimal("106")
        assert summary["payment_status"] == "partial"

    def test_attached_entry_must_stay_a_payment(self, client, auth_headers, make_pedido, make_income):
        pedido = make_pedido(quantity=1, unit_price="100")
        entry = make_income(amount="50")
        client.post(f"/ventas/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)

        for change in ({"subarea": "VENTAS MENUDEO"}, {"area": "COMPRAS"}, {"entry_type": "expense"}):
            response = client.put(f"/ledger-mxn/{entry['id']}", json=change, headers=auth_headers)
            assert response.status_code == 409

        stored = client.get(f"/ledger-mxn/{entry['id']}", headers=auth_headers).json()
        assert (stored["subarea"], stored["entry_type"]) == ("VENTAS MAYOREO", "income")
        assert Decimal(stored["amount"]) == Decimal("50")
        summary = client.get(f"/ventas/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert Decimal(summary["amount_paid"]) == Decimal("50")

    def test_unattached_entry_edit_is_free(self, client, auth_headers, make_income):
        entry = make_income(amount="50")
        response = client.put(f"/ledger-mxn/{entry['id']}", json={"entry_type": "expense"}, headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("-50")
