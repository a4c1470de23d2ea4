"""
Tests para el módulo de E-commerce

Cubren:
- Kits respaldados por apartados sobre inventario ESMALTADO
- Pedidos que descuentan y devuelven stock de kits
- Consumo de apartados al quedar ENTREGADO_Y_PAGADO
- Pagos ligados a ingresos VENTAS ECOMMERCE del libro MXN
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.common.utils import next_document_number
from app.modules.ecommerce.models import EcommercePedido


# ===== FIXTURES =====

@pytest.fixture
def taza(make_product):
    return make_product()


@pytest.fixture
def make_kit(client, auth_headers, catalog, taza):
    def _make(color_key="azul_id", quantity=2, **extra):
        payload = {
            "name": "Kit Desayuno",
            "sku": "KIT-001",
            "price": "450",
            "min_stock": 1,
            "max_stock": 10,
            "items": [{
                "product_id": taza["id"],
                "esmalte_color_id": catalog[color_key] if color_key else None,
                "quantity": quantity,
            }],
            **extra,
        }
        response = client.post("/ecommerce/kits/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def stocked_kit(client, auth_headers, catalog, taza, add_esmaltado, make_kit):
    add_esmaltado(taza["id"], catalog["azul_id"], 10)
    kit = make_kit(max_stock=3)
    adjust(client, auth_headers, kit["id"], 3)
    return kit


def adjust(client, headers, kit_id, amount):
    return client.post(f"/ecommerce/kits/{kit_id}/stock", json={"adjustment": amount}, headers=headers)


def inventory_rows(client, headers, product_id):
    rows = client.get("/produccion/inventory", params={"product_id": product_id, "stage": "ESMALTADO"},
                      headers=headers).json()
    return {r["esmalte_color_name"]: r for r in rows}


def create_order(client, headers, kit_id, quantity=1, **extra):
    return client.post("/ecommerce/pedidos/", json={
        "customer_name": "Ana Pérez",
        "customer_email": "ana@example.com",
        "shipping_cost": "99",
        "discount": "49",
        "items": [{"kit_id": kit_id, "quantity": quantity}],
        **extra,
    }, headers=headers)


def set_status(client, headers, pedido_id, new_status):
    return client.patch(f"/ecommerce/pedidos/{pedido_id}/status", json={"status": new_status}, headers=headers)


# ===== TESTS DE KITS =====

class TestKits:

    def test_create_kit(self, make_kit):
        kit = make_kit()
        assert kit["current_stock"] == 0
        assert kit["low_stock"] is True
        assert kit["items"][0]["product_name"] == "Taza Clásica"
        assert kit["items"][0]["esmalte_color_name"] == "AZUL"

    def test_blank_sku_is_null(self, make_kit):
        assert make_kit(sku="  ")["sku"] is None

    def test_duplicate_sku(self, make_kit, client, auth_headers, taza):
        make_kit()
        response = client.post("/ecommerce/kits/", json={
            "name": "Otro", "sku": "KIT-001", "items": [{"product_id": taza["id"], "quantity": 1}]
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_embalaje_product_rejected(self, client, auth_headers, make_product):
        caja = make_product(name="Caja", category="EMBALAJE")
        response = client.post("/ecommerce/kits/", json={
            "name": "Kit Caja", "items": [{"product_id": caja["id"], "quantity": 1}]
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_min_greater_than_max(self, client, auth_headers, taza):
        response = client.post("/ecommerce/kits/", json={
            "name": "Kit", "min_stock": 5, "max_stock": 2, "items": [{"product_id": taza["id"], "quantity": 1}]
        }, headers=auth_headers)
        assert response.status_code == 422

    def test_available_inventory(self, client, auth_headers, catalog, taza, add_esmaltado):
        add_esmaltado(taza["id"], catalog["azul_id"], 3)
        rows = client.get("/ecommerce/kits/inventory/available", headers=auth_headers).json()
        assert [(r["esmalte_color_name"], r["disponibles"]) for r in rows] == [("AZUL", 3)]


# ===== TESTS DE STOCK =====

class TestKitStock:

    def test_increase_allocates(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 5)
        kit = make_kit()

        response = adjust(client, auth_headers, kit["id"], 2)
        assert response.status_code == 200
        assert response.json() == {
            "message": "Stock ajustado exitosamente", "previous_stock": 0, "adjustment": 2, "new_stock": 2
        }
        assert inventory_rows(client, auth_headers, taza["id"])["AZUL"]["apartados"] == 4

        detail = client.get(f"/ecommerce/kits/{kit['id']}", headers=auth_headers).json()
        assert sum(a["quantity_allocated"] for a in detail["allocations"]) == 4

    def test_increase_all_or_nothing(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 3)
        kit = make_kit()

        response = adjust(client, auth_headers, kit["id"], 2)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["missing"] == 1
        assert inventory_rows(client, auth_headers, taza["id"])["AZUL"]["apartados"] == 0
        assert client.get(f"/ecommerce/kits/{kit['id']}", headers=auth_headers).json()["current_stock"] == 0

    def test_decrease_releases(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 6)
        kit = make_kit()
        adjust(client, auth_headers, kit["id"], 3)

        response = adjust(client, auth_headers, kit["id"], -1)
        assert response.json()["new_stock"] == 2
        assert inventory_rows(client, auth_headers, taza["id"])["AZUL"]["apartados"] == 4

    def test_stock_bounds(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 30)
        kit = make_kit(quantity=1, max_stock=3)
        assert adjust(client, auth_headers, kit["id"], 0).status_code == 400
        assert adjust(client, auth_headers, kit["id"], -1).status_code == 400
        assert adjust(client, auth_headers, kit["id"], 4).status_code == 400

    def test_kit_without_color_uses_any_color(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 1)
        add_esmaltado(taza["id"], catalog["verde_id"], 3)
        kit = make_kit(color_key=None)

        assert adjust(client, auth_headers, kit["id"], 2).status_code == 200
        rows = inventory_rows(client, auth_headers, taza["id"])
        assert rows["VERDE"]["apartados"] == 3
        assert rows["AZUL"]["apartados"] == 1

    def test_kit_apartados_block_merma(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 4)
        kit = make_kit()
        adjust(client, auth_headers, kit["id"], 2)
        response = client.post("/produccion/inventory/merma", json={
            "product_id": taza["id"], "stage": "ESMALTADO", "esmalte_color_id": catalog["azul_id"], "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_items_locked_while_allocated(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 2)
        kit = make_kit()
        adjust(client, auth_headers, kit["id"], 1)
        response = client.put(f"/ecommerce/kits/{kit['id']}", json={
            "items": [{"product_id": taza["id"], "quantity": 1}]
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_delete_kit_with_stock(self, client, auth_headers, catalog, taza, add_esmaltado, make_kit):
        add_esmaltado(taza["id"], catalog["azul_id"], 2)
        kit = make_kit()
        adjust(client, auth_headers, kit["id"], 1)
        assert client.delete(f"/ecommerce/kits/{kit['id']}", headers=auth_headers).status_code == 409

        adjust(client, auth_headers, kit["id"], -1)
        assert client.delete(f"/ecommerce/kits/{kit['id']}", headers=auth_headers).status_code == 200


# ===== TESTS DE PEDIDOS =====

class TestEcommercePedidos:

    def test_create_pedido(self, client, auth_headers, stocked_kit):
        response = create_order(client, auth_headers, stocked_kit["id"], quantity=2)
        assert response.status_code == 201
        data = response.json()
        assert data["pedido_number"].startswith("ECO-")
        assert Decimal(data["subtotal"]) == Decimal("900")
        assert Decimal(data["total"]) == Decimal("950")
        assert data["total_kits"] == 2
        assert data["items"][0]["kit_name"] == "Kit Desayuno"

        kit = client.get(f"/ecommerce/kits/{stocked_kit['id']}", headers=auth_headers).json()
        assert kit["current_stock"] == 1
        assert sum(a["quantity_allocated"] for a in kit["allocations"]) == 6

    def test_folio_past_9999(self, client, auth_headers, db_session, stocked_kit):
        year = datetime.now(timezone.utc).year
        for sequence in ("0002", "9999", "10000"):
            db_session.add(EcommercePedido(pedido_number=f"ECO-{year}-{sequence}", customer_name="Histórico"))
        db_session.commit()

        assert next_document_number(db_session, EcommercePedido.pedido_number, "ECO") == f"ECO-{year}-10001"
        response = create_order(client, auth_headers, stocked_kit["id"])
        assert response.status_code == 201
        assert response.json()["pedido_number"] == f"ECO-{year}-10001"

    def test_insufficient_kit_stock(self, client, auth_headers, stocked_kit):
        response = create_order(client, auth_headers, stocked_kit["id"], quantity=4)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["missing"] == 1

    def test_update_recomputes_total(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        response = client.put(f"/ecommerce/pedidos/{pedido['id']}", json={
            "discount": "0", "tracking_number": "DHL123"
        }, headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["total"]) == Decimal("549")
        assert response.json()["tracking_number"] == "DHL123"

    def test_cancel_and_restore(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"], quantity=2).json()
        set_status(client, auth_headers, pedido["id"], "CANCELLED")
        assert client.get(f"/ecommerce/kits/{stocked_kit['id']}", headers=auth_headers).json()["current_stock"] == 3

        set_status(client, auth_headers, pedido["id"], "CONFIRMED")
        assert client.get(f"/ecommerce/kits/{stocked_kit['id']}", headers=auth_headers).json()["current_stock"] == 1

    def test_cancel_beyond_max_stock(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        adjust(client, auth_headers, stocked_kit["id"], 1)
        assert set_status(client, auth_headers, pedido["id"], "CANCELLED").status_code == 409

    def test_shipping_dates(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        assert set_status(client, auth_headers, pedido["id"], "SHIPPED").json()["shipped_date"] is not None
        assert set_status(client, auth_headers, pedido["id"], "DELIVERED").json()["delivered_date"] is not None

    def test_entregado_y_pagado_consumes(self, client, auth_headers, taza, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"], quantity=2).json()
        response = set_status(client, auth_headers, pedido["id"], "ENTREGADO_Y_PAGADO")
        assert response.status_code == 200

        row = inventory_rows(client, auth_headers, taza["id"])["AZUL"]
        assert (row["quantity"], row["apartados"], row["vendidos"]) == (6, 2, 4)
        assert set_status(client, auth_headers, pedido["id"], "PENDING").status_code == 409

        audit = client.get("/inventory/apartados/audit", headers=auth_headers).json()
        assert audit["consistent"] is True

    def test_delete_returns_stock(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"], quantity=2).json()
        assert client.delete(f"/ecommerce/pedidos/{pedido['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/ecommerce/kits/{stocked_kit['id']}", headers=auth_headers).json()["current_stock"] == 3

    def test_kit_in_orders_cannot_be_deleted(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"], quantity=3).json()
        set_status(client, auth_headers, pedido["id"], "ENTREGADO_Y_PAGADO")
        assert client.delete(f"/ecommerce/kits/{stocked_kit['id']}", headers=auth_headers).status_code == 409

    def test_update_keeps_payment_status_in_step(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income(amount="500")
        client.post(f"/ecommerce/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)

        response = client.put(f"/ecommerce/pedidos/{pedido['id']}", json={"discount": "0"}, headers=auth_headers)
        assert Decimal(response.json()["total"]) == Decimal("549")
        assert response.json()["payment_status"] == "partial"
        assert Decimal(response.json()["amount_remaining"]) == Decimal("49")


# ===== TESTS DE PAGOS =====

@pytest.fixture
def make_income(client, auth_headers):
    def _make(amount="100", area="VENTAS", subarea="VENTAS ECOMMERCE", entry_type="income"):
        response = client.post("/ledger-mxn/", json={
            "amount": amount,
            "concept": "Cobro tienda en línea",
            "bank_account": "Mercado Pago",
            "entry_type": entry_type,
            "transaction_date": "2025-03-01",
            "area": area,
            "subarea": subarea,
        }, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


class TestEcommercePayments:

    def test_new_pedido_is_unpaid(self, client, auth_headers, stocked_kit):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        assert pedido["payment_status"] == "unpaid"
        assert Decimal(pedido["amount_paid"]) == Decimal("0")

    def test_attach_and_detach(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income(amount="200")

        for path in ("/ecommerce/pedidos/available", "/ecommerce/pedidos/payments/available"):
            assert [e["id"] for e in client.get(path, headers=auth_headers).json()] == [entry["id"]]

        response = client.post(f"/ecommerce/pedidos/{pedido['id']}/payments",
                               json={"ledger_entry_id": entry["id"], "notes": "Transferencia"}, headers=auth_headers)
        assert response.status_code == 201
        payment = response.json()
        assert Decimal(payment["amount"]) == Decimal("200")
        assert payment["notes"] == "Transferencia"

        payments = client.get(f"/ecommerce/pedidos/{pedido['id']}/payments", headers=auth_headers).json()
        assert Decimal(payments["total_paid"]) == Decimal("200")
        assert payments["payment_count"] == 1

        summary = client.get(f"/ecommerce/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert summary["payment_status"] == "partial"
        assert Decimal(summary["amount_remaining"]) == Decimal("300")
        assert client.get("/ecommerce/pedidos/available", headers=auth_headers).json() == []

        response = client.delete(f"/ecommerce/pedidos/payments/{payment['id']}", headers=auth_headers)
        assert response.status_code == 200
        summary = client.get(f"/ecommerce/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert summary["payment_status"] == "unpaid"
        assert summary["payment_count"] == 0

    def test_fully_paid(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        for amount in ("450", "50"):
            entry = make_income(amount=amount)
            client.post(f"/ecommerce/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                        headers=auth_headers)
        data = client.get(f"/ecommerce/pedidos/{pedido['id']}", headers=auth_headers).json()
        assert data["payment_status"] == "paid"
        assert Decimal(data["amount_remaining"]) == Decimal("0")

    def test_entry_attached_once(self, client, auth_headers, stocked_kit, make_income):
        first = create_order(client, auth_headers, stocked_kit["id"]).json()
        second = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income()
        client.post(f"/ecommerce/pedidos/{first['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)
        response = client.post(f"/ecommerce/pedidos/{second['id']}/payments",
                               json={"ledger_entry_id": entry["id"]}, headers=auth_headers)
        assert response.status_code == 409

    def test_wrong_subarea_or_type(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        mayoreo = make_income(subarea="VENTAS MAYOREO")
        expense = make_income(entry_type="expense")
        for entry in (mayoreo, expense):
            response = client.post(f"/ecommerce/pedidos/{pedido['id']}/payments",
                                   json={"ledger_entry_id": entry["id"]}, headers=auth_headers)
            assert response.status_code == 400
        assert [e["id"] for e in client.get("/ventas/pedidos/payments/available", headers=auth_headers).json()] \
            == [mayoreo["id"]]

    def test_missing_entry_or_pedido(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income()
        response = client.post(f"/ecommerce/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": 9999},
                               headers=auth_headers)
        assert response.status_code == 404
        response = client.post("/ecommerce/pedidos/9999/payments", json={"ledger_entry_id": entry["id"]},
                               headers=auth_headers)
        assert response.status_code == 404
        assert client.delete("/ecommerce/pedidos/payments/9999", headers=auth_headers).status_code == 404

    def test_ledger_edit_recalculates_pedido(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income(amount="500")
        client.post(f"/ecommerce/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)

        assert client.put(f"/ledger-mxn/{entry['id']}", json={"amount": "125"}, headers=auth_headers).status_code == 200
        summary = client.get(f"/ecommerce/pedidos/{pedido['id']}/payments/summary", headers=auth_headers).json()
        assert Decimal(summary["amount_paid"]) == Decimal("125")
        assert summary["payment_status"] == "partial"

        response = client.put(f"/ledger-mxn/{entry['id']}", json={"subarea": "VENTAS MAYOREO"}, headers=auth_headers)
        assert response.status_code == 409
        assert client.delete(f"/ledger-mxn/{entry['id']}", headers=auth_headers).status_code == 409

    def test_deleting_pedido_frees_entry(self, client, auth_headers, stocked_kit, make_income):
        pedido = create_order(client, auth_headers, stocked_kit["id"]).json()
        entry = make_income()
        client.post(f"/ecommerce/pedidos/{pedido['id']}/payments", json={"ledger_entry_id": entry["id"]},
                    headers=auth_headers)
        assert client.delete(f"/ecommerce/pedidos/{pedido['id']}", headers=auth_headers).status_code == 200
        assert [e["id"] for e in client.get("/ecommerce/pedidos/available", headers=auth_headers).json()] \
            == [entry["id"]]
