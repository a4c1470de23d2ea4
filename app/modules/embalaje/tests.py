"""
Tests para el inventario de Embalaje
"""

import pytest

from app.modules.embalaje.models import EmbalajeInventory
from app.modules.inventory.service import ReservationService


@pytest.fixture
def caja(make_product):
    return make_product(name="Caja Kit", category="EMBALAJE")


class TestEmbalajeInventory:

    def test_add_and_list(self, client, auth_headers, caja):
        response = client.post("/embalaje/inventory/add", json={
            "items": [{"product_id": caja["id"], "quantity": 20, "notes": "Compra"}]
        }, headers=auth_headers)
        assert response.status_code == 200
        row = response.json()["inventory"][0]
        assert row["quantity"] == 20
        assert row["disponibles"] == 20

        inventory = client.get("/embalaje/inventory", headers=auth_headers).json()
        assert [(r["product_name"], r["quantity"]) for r in inventory] == [("Caja Kit", 20)]

    def test_ceramic_product_rejected(self, client, auth_headers, make_product):
        taza = make_product()
        response = client.post("/embalaje/inventory/add", json={
            "items": [{"product_id": taza["id"], "quantity": 1}]
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_remove_is_all_or_nothing(self, client, auth_headers, caja, make_product):
        bolsa = make_product(name="Bolsa", category="EMBALAJE")
        client.post("/embalaje/inventory/add", json={
            "items": [{"product_id": caja["id"], "quantity": 5}, {"product_id": bolsa["id"], "quantity": 1}]
        }, headers=auth_headers)

        response = client.post("/embalaje/inventory/remove", json={
            "items": [{"product_id": caja["id"], "quantity": 2}, {"product_id": bolsa["id"], "quantity": 3}]
        }, headers=auth_headers)
        assert response.status_code == 400

        quantities = {r["product_name"]: r["quantity"]
                      for r in client.get("/embalaje/inventory", headers=auth_headers).json()}
        assert quantities == {"Bolsa": 1, "Caja Kit": 5}

    def test_adjust_and_movements(self, client, auth_headers, caja):
        client.post("/embalaje/inventory/add", json={"items": [{"product_id": caja["id"], "quantity": 10}]},
                    headers=auth_headers)
        response = client.post("/embalaje/inventory/adjust", json={
            "items": [{"product_id": caja["id"], "quantity": 4}]
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["inventory"][0]["quantity"] == 4

        movements = client.get("/embalaje/inventory/movements", params={"product_id": caja["id"]},
                               headers=auth_headers).json()
        assert sorted(m["quantity"] for m in movements) == [-6, 10]
        assert {m["created_by_name"] for m in movements} == {"tester"}

    def test_hide_empty_rows(self, client, auth_headers, caja):
        client.post("/embalaje/inventory/adjust", json={"items": [{"product_id": caja["id"], "quantity": 0}]},
                    headers=auth_headers)
        assert len(client.get("/embalaje/inventory", headers=auth_headers).json()) == 1
        assert client.get("/embalaje/inventory", params={"include_empty": False}, headers=auth_headers).json() == []

    def test_duplicate_row_is_conflict(self, client, auth_headers, caja, monkeypatch):
        client.post("/embalaje/inventory/add", json={"items": [{"product_id": caja["id"], "quantity": 5}]},
                    headers=auth_headers)

        # Otra petición creó la fila entre la búsqueda y el insert
        def create_without_lookup(self, product_id):
            inventory = EmbalajeInventory(product_id=product_id, quantity=0, apartados=0, vendidos=0)
            self.db.add(inventory)
            self.db.flush()
            return inventory

        monkeypatch.setattr(ReservationService, "get_or_create_embalaje", create_without_lookup)
        response = client.post("/embalaje/inventory/add", json={
            "items": [{"product_id": caja["id"], "quantity": 3}]
        }, headers=auth_headers)
        assert response.status_code == 409

        inventory = client.get("/embalaje/inventory", headers=auth_headers).json()
        assert [r["quantity"] for r in inventory] == [5]
