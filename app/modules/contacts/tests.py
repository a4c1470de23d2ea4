"""
Tests para el módulo de Contactos

Cubren:
- CRUD completo vía API
- Filtros y resumen por tipo/estado
- Permisos: solo quien registra puede modificar
- Adjuntos
"""

import pytest


# ===== FIXTURES =====

@pytest.fixture
def sample_contact_data():
    """Datos de ejemplo para crear contactos"""
    return {
        "name": "Cerámicas del Bajío",
        "contact_type": "supplier",
        "company": "Cerámicas del Bajío S.A. de C.V.",
        "email": "ventas@ceramicasbajio.mx",
        "phone": "442-123-4567",
        "rfc": "cba010101ab1",
        "area": "COMPRAS",
        "subarea": "PROVEEDORES",
        "tags": ["barro", " ", "barro", "esmaltes"],
        "attachments": [
            {"file_name": "constancia.pdf", "file_url": "https://files.example.com/constancia.pdf", "file_size": 2048}
        ],
    }


# ===== TESTS DE CRUD =====

class TestContactCrud:
    """Tests de creación, consulta, actualización y eliminación"""

    def test_create_contact(self, client, auth_headers, sample_contact_data):
        """Crear contacto genera id interno CON- y normaliza RFC y etiquetas"""
        response = client.post("/contacts/", json=sample_contact_data, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["internal_id"].startswith("CON-")
        assert data["rfc"] == "CBA010101AB1"
        assert data["tags"] == ["barro", "esmaltes"]
        assert data["status"] == "active"
        assert data["username"] == "tester"
        assert len(data["attachments"]) == 1

    def test_create_contact_requires_area(self, client, auth_headers, sample_contact_data):
        sample_contact_data.pop("area")
        response = client.post("/contacts/", json=sample_contact_data, headers=auth_headers)
        assert response.status_code == 422

    def test_create_contact_invalid_type(self, client, auth_headers, sample_contact_data):
        sample_contact_data["contact_type"] = "customer"
        response = client.post("/contacts/", json=sample_contact_data, headers=auth_headers)
        assert response.status_code == 422

    def test_requires_authentication(self, client):
        response = client.get("/contacts/")
        assert response.status_code in (401, 403)

    def test_get_contact_not_found(self, client, auth_headers):
        response = client.get("/contacts/999", headers=auth_headers)
        assert response.status_code == 404

    def test_update_contact(self, client, auth_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.put(f"/contacts/{contact_id}", json={"status": "archived", "city": "Querétaro"},
                              headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "archived"
        assert response.json()["city"] == "Querétaro"

    def test_update_with_empty_name(self, client, auth_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.put(f"/contacts/{contact_id}", json={"name": "   "}, headers=auth_headers)
        assert response.status_code == 400

    def test_update_without_fields(self, client, auth_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.put(f"/contacts/{contact_id}", json={}, headers=auth_headers)
        assert response.status_code == 400

    def test_delete_contact(self, client, auth_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.delete(f"/contacts/{contact_id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/contacts/{contact_id}", headers=auth_headers).status_code == 404


# ===== TESTS DE PERMISOS =====

class TestContactPermissions:
    """Los contactos se comparten para lectura pero solo el autor los modifica"""

    def test_other_user_can_read(self, client, auth_headers, other_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.get(f"/contacts/{contact_id}", headers=other_headers)
        assert response.status_code == 200

    def test_other_user_cannot_update_or_delete(self, client, auth_headers, other_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        assert client.put(f"/contacts/{contact_id}", json={"name": "X"}, headers=other_headers).status_code == 403
        assert client.delete(f"/contacts/{contact_id}", headers=other_headers).status_code == 403


# ===== TESTS DE FILTROS Y RESUMEN =====

class TestContactFilters:

    def test_filters_and_search(self, client, auth_headers, sample_contact_data):
        client.post("/contacts/", json=sample_contact_data, headers=auth_headers)
        client.post("/contacts/", json={
            "name": "Tienda Lupita", "contact_type": "client", "area": "VENTAS", "subarea": "VENTAS MAYOREO"
        }, headers=auth_headers)

        response = client.get("/contacts/", params={"contact_type": "client"}, headers=auth_headers)
        assert [c["name"] for c in response.json()] == ["Tienda Lupita"]

        response = client.get("/contacts/", params={"search": "bajío"}, headers=auth_headers)
        assert len(response.json()) == 1

        response = client.get("/contacts/", params={"area": "COMPRAS", "subarea": "PROVEEDORES"},
                              headers=auth_headers)
        assert len(response.json()) == 1

    def test_summary(self, client, auth_headers, sample_contact_data):
        client.post("/contacts/", json=sample_contact_data, headers=auth_headers)
        client.post("/contacts/", json={
            "name": "Prospecto", "contact_type": "prospect", "status": "inactive",
            "area": "VENTAS", "subarea": "VENTAS MAYOREO"
        }, headers=auth_headers)

        data = client.get("/contacts/summary", headers=auth_headers).json()
        assert data["total"] == 2
        assert data["by_type"]["supplier"] == 1
        assert data["by_type"]["prospect"] == 1
        assert data["by_type"]["vendor"] == 0
        assert data["by_status"] == {"active": 1, "inactive": 1, "archived": 0}


# ===== TESTS DE ADJUNTOS =====

class TestContactAttachments:

    def test_add_and_delete_attachment(self, client, auth_headers, sample_contact_data):
        contact_id = client.post("/contacts/", json=sample_contact_data, headers=auth_headers).json()["id"]
        response = client.post(f"/contacts/{contact_id}/attachments", json={
            "file_name": "rfc.pdf", "file_url": "https://files.example.com/rfc.pdf"
        }, headers=auth_headers)
        assert response.status_code == 201
        attachment_id = response.json()["id"]

        contact = client.get(f"/contacts/{contact_id}", headers=auth_headers).json()
        assert len(contact["attachments"]) == 2

        response = client.delete(f"/contacts/{contact_id}/attachments/{attachment_id}", headers=auth_headers)
        assert response.status_code == 200
        response = client.delete(f"/contacts/{contact_id}/attachments/{attachment_id}", headers=auth_headers)
        assert response.status_code == 404


# ===== TESTS DE REGISTRO DE MODELOS =====

class TestContactModelRegistration:

    def test_package_import_does_not_load_models(self):
        import importlib
        package = importlib.import_module("app.modules.contacts")
        assert not hasattr(package, "Contact")
        assert not hasattr(package, "ContactService")

    def test_tables_registered_once(self):
        from app.database.database import Base
        from app.modules.contacts.models import Contact, ContactAttachment

        assert Base.metadata.tables["contacts"] is Contact.__table__
        assert Base.metadata.tables["contact_attachments"] is ContactAttachment.__table__
