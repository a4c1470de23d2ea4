"""
Tests para el módulo de Producción

Cubren:
- Catálogos con conflicto por duplicado y por uso
- Productos y costo total
- Flujo de etapas CRUDO → SANCOCHADO → ESMALTADO
- Ajustes y mermas respetando apartados
"""

import pytest


# ===== TESTS DE CATÁLOGOS =====

class TestCatalogs:

    def test_duplicate_tipo(self, client, auth_headers, catalog):
        response = client.post("/produccion/tipo", json={"name": "TAZA"}, headers=auth_headers)
        assert response.status_code == 409

    def test_invalid_hex_code(self, client, auth_headers):
        response = client.post("/produccion/esmalte-color", json={"color": "ROJO", "hex_code": "rojo"},
                               headers=auth_headers)
        assert response.status_code == 422

    def test_sizes_sorted(self, client, auth_headers):
        for size in ("20", "10.5", "15"):
            client.post("/produccion/size", json={"size_cm": size}, headers=auth_headers)
        sizes = [float(s["size_cm"]) for s in client.get("/produccion/size", headers=auth_headers).json()]
        assert sizes == [10.5, 15.0, 20.0]

    def test_delete_tipo_in_use(self, client, auth_headers, catalog, make_product):
        make_product()
        response = client.delete(f"/produccion/tipo/{catalog['tipo_id']}", headers=auth_headers)
        assert response.status_code == 409

    def test_delete_color_with_inventory(self, client, auth_headers, catalog, make_product, add_esmaltado):
        product = make_product()
        add_esmaltado(product["id"], catalog["azul_id"], 2)
        response = client.delete(f"/produccion/esmalte-color/{catalog['azul_id']}", headers=auth_headers)
        assert response.status_code == 409

        response = client.delete(f"/produccion/esmalte-color/{catalog['verde_id']}", headers=auth_headers)
        assert response.status_code == 200


# ===== TESTS DE PRODUCTOS =====

class TestProducts:

    def test_create_product(self, make_product):
        product = make_product()
        assert product["tipo_name"] == "TAZA"
        assert product["product_category"] == "CERAMICA"
        assert float(product["costo_total"]) == 15.5

    def test_create_product_unknown_tipo(self, client, auth_headers):
        response = client.post("/produccion/products", json={
            "name": "Sin tipo", "stage": "CRUDO", "tipo_id": 999
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_filter_by_category(self, client, auth_headers, make_product):
        make_product()
        make_product(name="Caja", category="EMBALAJE")
        response = client.get("/produccion/products", params={"product_category": "EMBALAJE"}, headers=auth_headers)
        assert [p["name"] for p in response.json()] == ["Caja"]

    def test_change_category_with_stock(self, client, auth_headers, make_product):
        product = make_product()
        client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 3},
                    headers=auth_headers)
        response = client.put(f"/produccion/products/{product['id']}", json={"product_category": "EMBALAJE"},
                              headers=auth_headers)
        assert response.status_code == 409

    def test_delete_product(self, client, auth_headers, make_product):
        product = make_product()
        assert client.delete(f"/produccion/products/{product['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/produccion/products/{product['id']}", headers=auth_headers).status_code == 404

    def test_delete_product_with_stock(self, client, auth_headers, make_product):
        product = make_product()
        client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 1},
                    headers=auth_headers)
        assert client.delete(f"/produccion/products/{product['id']}", headers=auth_headers).status_code == 409


# ===== TESTS DE FLUJO DE ETAPAS =====

class TestStageFlow:

    def test_full_flow(self, client, auth_headers, catalog, make_product, add_esmaltado):
        product = make_product()
        row = add_esmaltado(product["id"], catalog["azul_id"], 5)
        assert row["stage"] == "ESMALTADO"
        assert row["esmalte_color_name"] == "AZUL"
        assert row["quantity"] == 5
        assert row["disponibles"] == 5

        inventory = client.get("/produccion/inventory", params={"product_id": product["id"]},
                               headers=auth_headers).json()
        assert [(r["stage"], r["quantity"]) for r in inventory] == [("ESMALTADO", 5)]

        movements = client.get("/produccion/inventory/movements", params={"product_id": product["id"]},
                               headers=auth_headers).json()
        assert {m["movement_type"] for m in movements} == {"CRUDO_INPUT", "SANCOCHADO_PROCESS", "ESMALTADO_PROCESS"}

    def test_include_empty_rows(self, client, auth_headers, catalog, make_product, add_esmaltado):
        product = make_product()
        add_esmaltado(product["id"], catalog["azul_id"], 2)
        inventory = client.get("/produccion/inventory", params={"include_empty": True},
                               headers=auth_headers).json()
        assert {r["stage"] for r in inventory} == {"CRUDO", "SANCOCHADO", "ESMALTADO"}

    def test_sancochado_insufficient(self, client, auth_headers, make_product):
        product = make_product()
        client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 2},
                    headers=auth_headers)
        response = client.post("/produccion/inventory/sancochado", json={"product_id": product["id"], "quantity": 3},
                               headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["missing"] == 1

    def test_embalaje_product_rejected(self, client, auth_headers, make_product):
        product = make_product(name="Caja", category="EMBALAJE")
        response = client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 2},
                               headers=auth_headers)
        assert response.status_code == 400

    def test_esmaltado_requires_color(self, client, auth_headers, make_product):
        product = make_product()
        response = client.post("/produccion/inventory/esmaltado", json={"product_id": product["id"], "quantity": 1},
                               headers=auth_headers)
        assert response.status_code == 422


# ===== TESTS DE AJUSTES Y MERMAS =====

class TestAdjustments:

    def test_adjustment(self, client, auth_headers, make_product):
        product = make_product()
        client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 10},
                    headers=auth_headers)
        response = client.post("/produccion/inventory/adjust", json={
            "product_id": product["id"], "stage": "CRUDO", "quantity": 7
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["old_quantity"] == 10
        assert data["adjustment"] == -3
        assert data["inventory"]["quantity"] == 7

    def test_color_only_for_esmaltado(self, client, auth_headers, catalog, make_product):
        product = make_product()
        response = client.post("/produccion/inventory/adjust", json={
            "product_id": product["id"], "stage": "CRUDO", "quantity": 1, "esmalte_color_id": catalog["azul_id"]
        }, headers=auth_headers)
        assert response.status_code == 422

    def test_merma(self, client, auth_headers, catalog, make_product, add_esmaltado):
        product = make_product()
        add_esmaltado(product["id"], catalog["azul_id"], 4)
        response = client.post("/produccion/inventory/merma", json={
            "product_id": product["id"], "stage": "ESMALTADO", "esmalte_color_id": catalog["azul_id"], "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["inventory"][0]["quantity"] == 3

    def test_merma_more_than_available(self, client, auth_headers, make_product):
        product = make_product()
        client.post("/produccion/inventory/crudo", json={"product_id": product["id"], "quantity": 1},
                    headers=auth_headers)
        response = client.post("/produccion/inventory/merma", json={
            "product_id": product["id"], "stage": "CRUDO", "quantity": 2
        }, headers=auth_headers)
        assert response.status_code == 400
