"""
Tests para el módulo de Documentos
"""

import pytest


@pytest.fixture
def sample_document_data():
    return {
        "document_name": "Manual de esmaltado",
        "description": "Temperaturas y tiempos de horneado",
        "area": "PRODUCCION",
        "subarea": "ESMALTADO",
        "tags": ["manual"],
        "attachments": [
            {"file_name": "manual.pdf", "file_url": "https://files.example.com/manual.pdf", "file_type": "application/pdf"}
        ],
    }


class TestDocuments:

    def test_create_document(self, client, auth_headers, sample_document_data):
        response = client.post("/documents/", json=sample_document_data, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["internal_id"].startswith("DOC-")
        assert data["version"] == "1.0"
        assert data["status"] == "active"
        assert data["attachment_count"] == 1

    def test_create_requires_attachment(self, client, auth_headers, sample_document_data):
        sample_document_data["attachments"] = []
        response = client.post("/documents/", json=sample_document_data, headers=auth_headers)
        assert response.status_code == 422

    def test_update_and_permissions(self, client, auth_headers, other_headers, sample_document_data):
        document_id = client.post("/documents/", json=sample_document_data, headers=auth_headers).json()["id"]

        response = client.put(f"/documents/{document_id}", json={"version": "2.0", "status": "draft"},
                              headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["version"] == "2.0"

        response = client.put(f"/documents/{document_id}", json={"version": "3.0"}, headers=other_headers)
        assert response.status_code == 403
        assert client.delete(f"/documents/{document_id}", headers=other_headers).status_code == 403

    def test_filters_and_summary(self, client, auth_headers, sample_document_data):
        client.post("/documents/", json=sample_document_data, headers=auth_headers)
        sample_document_data.update({"document_name": "Contrato", "area": "ADMIN", "subarea": "LEGAL",
                                     "status": "archived"})
        client.post("/documents/", json=sample_document_data, headers=auth_headers)

        response = client.get("/documents/", params={"status": "archived"}, headers=auth_headers)
        assert [d["document_name"] for d in response.json()] == ["Contrato"]
        response = client.get("/documents/", params={"search": "manual"}, headers=auth_headers)
        assert len(response.json()) == 1

        summary = client.get("/documents/summary", headers=auth_headers).json()
        assert summary["total_documents"] == 2
        assert summary["active_documents"] == 1
        assert summary["archived_documents"] == 1
        assert summary["total_areas"] == 2

    def test_delete_document(self, client, auth_headers, sample_document_data):
        document_id = client.post("/documents/", json=sample_document_data, headers=auth_headers).json()["id"]
        assert client.delete(f"/documents/{document_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/documents/{document_id}", headers=auth_headers).status_code == 404
