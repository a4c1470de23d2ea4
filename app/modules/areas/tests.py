"""
Tests para el módulo de Áreas

Cubren:
- Catálogo de áreas y subáreas
- Conflictos por nombre duplicado y por registros asociados
- Propagación de renombrados
- Contenido por área/subárea
"""

import pytest


# ===== FIXTURES =====

@pytest.fixture
def area(client, auth_headers):
    response = client.post("/areas/", json={
        "name": "VENTAS", "description": "Ventas y clientes", "color": "#1A2B3C"
    }, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def subarea(client, auth_headers, area):
    response = client.post("/areas/subareas", json={
        "area_id": area["id"], "name": "VENTAS MAYOREO"
    }, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


def create_task(client, headers, area="VENTAS", subarea="VENTAS MAYOREO", title="Visitar cliente"):
    response = client.post("/tasks/", json={
        "title": title, "area": area, "subarea": subarea
    }, headers=headers)
    assert response.status_code == 201
    return response.json()


# ===== TESTS DE ÁREAS =====

class TestAreas:

    def test_create_area(self, area):
        assert area["name"] == "VENTAS"
        assert area["color"] == "#1A2B3C"
        assert area["subareas"] == []

    def test_duplicate_area(self, client, auth_headers, area):
        response = client.post("/areas/", json={"name": "VENTAS"}, headers=auth_headers)
        assert response.status_code == 409

    def test_invalid_color(self, client, auth_headers):
        response = client.post("/areas/", json={"name": "COMPRAS", "color": "azul"}, headers=auth_headers)
        assert response.status_code == 422

    def test_list_areas_sorted(self, client, auth_headers, area):
        client.post("/areas/", json={"name": "ADMINISTRACION"}, headers=auth_headers)
        names = [a["name"] for a in client.get("/areas/", headers=auth_headers).json()]
        assert names == ["ADMINISTRACION", "VENTAS"]

    def test_get_area_not_found(self, client, auth_headers):
        assert client.get("/areas/999", headers=auth_headers).status_code == 404

    def test_rename_propagates(self, client, auth_headers, area, subarea):
        task = create_task(client, auth_headers)
        response = client.put(f"/areas/{area['id']}", json={"name": "COMERCIAL"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "COMERCIAL"

        task = client.get(f"/tasks/{task['id']}", headers=auth_headers).json()
        assert task["area"] == "COMERCIAL"
        assert task["subarea"] == "VENTAS MAYOREO"

    def test_delete_area_in_use(self, client, auth_headers, area, subarea):
        create_task(client, auth_headers)
        response = client.delete(f"/areas/{area['id']}", headers=auth_headers)
        assert response.status_code == 409

    def test_delete_area(self, client, auth_headers, area, subarea):
        response = client.delete(f"/areas/{area['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/areas/{area['id']}", headers=auth_headers).status_code == 404


# ===== TESTS DE SUBÁREAS =====

class TestSubareas:

    def test_create_subarea(self, client, auth_headers, area, subarea):
        assert subarea["area_name"] == "VENTAS"
        detail = client.get(f"/areas/{area['id']}", headers=auth_headers).json()
        assert [s["name"] for s in detail["subareas"]] == ["VENTAS MAYOREO"]

    def test_subarea_missing_area(self, client, auth_headers):
        response = client.post("/areas/subareas", json={"area_id": 999, "name": "X"}, headers=auth_headers)
        assert response.status_code == 404

    def test_duplicate_subarea(self, client, auth_headers, area, subarea):
        response = client.post("/areas/subareas", json={
            "area_id": area["id"], "name": "VENTAS MAYOREO"
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_rename_subarea_propagates(self, client, auth_headers, subarea):
        task = create_task(client, auth_headers)
        other = create_task(client, auth_headers, subarea="VENTAS MENUDEO", title="Otra")

        response = client.put(f"/areas/subareas/{subarea['id']}", json={"name": "MAYOREO"}, headers=auth_headers)
        assert response.status_code == 200

        assert client.get(f"/tasks/{task['id']}", headers=auth_headers).json()["subarea"] == "MAYOREO"
        assert client.get(f"/tasks/{other['id']}", headers=auth_headers).json()["subarea"] == "VENTAS MENUDEO"

    def test_delete_subarea_in_use(self, client, auth_headers, subarea):
        create_task(client, auth_headers)
        response = client.delete(f"/areas/subareas/{subarea['id']}", headers=auth_headers)
        assert response.status_code == 409

    def test_delete_subarea(self, client, auth_headers, subarea):
        response = client.delete(f"/areas/subareas/{subarea['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.delete(f"/areas/subareas/{subarea['id']}", headers=auth_headers).status_code == 404


# ===== TESTS DE CONTENIDO =====

class TestAreaContent:

    def test_area_content_counts(self, client, auth_headers, other_headers):
        create_task(client, auth_headers)
        create_task(client, auth_headers, subarea="VENTAS MENUDEO", title="Menudeo")
        create_task(client, other_headers, title="Ajena")
        client.post("/contacts/", json={
            "name": "Tienda Lupita", "contact_type": "client", "area": "VENTAS", "subarea": "VENTAS MAYOREO"
        }, headers=auth_headers)

        data = client.get("/areas/VENTAS/content", headers=auth_headers).json()
        assert data["area"] == "VENTAS"
        assert data["subarea"] is None
        assert data["counts"]["tasks"] == 2
        assert data["counts"]["contacts"] == 1
        assert data["counts"]["total"] == 3
        assert len(data["content"]["tasks"]) == 2

    def test_subarea_content(self, client, auth_headers):
        create_task(client, auth_headers)
        create_task(client, auth_headers, subarea="VENTAS MENUDEO", title="Menudeo")

        data = client.get("/areas/VENTAS/subareas/VENTAS MENUDEO/content", headers=auth_headers).json()
        assert data["counts"]["tasks"] == 1
        assert data["content"]["tasks"][0]["title"] == "Menudeo"

    def test_content_limit(self, client, auth_headers):
        for i in range(3):
            create_task(client, auth_headers, title=f"Tarea {i}")
        data = client.get("/areas/VENTAS/content", params={"limit": 2}, headers=auth_headers).json()
        assert data["counts"]["tasks"] == 3
        assert len(data["content"]["tasks"]) == 2
