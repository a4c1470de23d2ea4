"""
Tests para el módulo de Proyectos
"""

import pytest


@pytest.fixture
def project_id(client, auth_headers):
    response = client.post("/projects/", json={"name": "Temporada navideña", "area": "VENTAS"},
                           headers=auth_headers)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def existing_task_id(client, auth_headers):
    response = client.post("/tasks/", json={"title": "Diseñar kit", "area": "VENTAS", "subarea": "ECOMMERCE"},
                           headers=auth_headers)
    return response.json()["id"]


class TestProjects:

    def test_create_defaults(self, client, auth_headers, project_id):
        data = client.get(f"/projects/{project_id}", headers=auth_headers).json()
        assert data["status"] == "planning"
        assert data["visibility"] == "shared"
        assert data["task_count"] == 0

    def test_private_projects_hidden(self, client, auth_headers, other_headers):
        response = client.post("/projects/", json={"name": "Privado", "area": "ADMIN", "visibility": "private"},
                               headers=auth_headers)
        private_id = response.json()["id"]
        assert client.get(f"/projects/{private_id}", headers=other_headers).status_code == 404
        assert client.get("/projects/", headers=other_headers).json() == []
        assert len(client.get("/projects/", headers=auth_headers).json()) == 1

    def test_only_owner_updates(self, client, auth_headers, other_headers, project_id):
        assert client.put(f"/projects/{project_id}", json={"status": "active"},
                          headers=other_headers).status_code == 403
        response = client.put(f"/projects/{project_id}", json={"status": "active"}, headers=auth_headers)
        assert response.json()["status"] == "active"
        assert client.delete(f"/projects/{project_id}", headers=other_headers).status_code == 403
        assert client.delete(f"/projects/{project_id}", headers=auth_headers).status_code == 200


class TestProjectTasks:

    def test_add_existing_task_expands_range(self, client, auth_headers, project_id, existing_task_id):
        response = client.post(f"/projects/{project_id}/tasks", json={
            "task_id": existing_task_id, "start_date": "2025-11-01", "end_date": "2025-11-15"
        }, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["title"] == "Diseñar kit"

        client.post(f"/projects/{project_id}/tasks", json={
            "create_task": {"title": "Fotos de producto", "area": "VENTAS", "subarea": "ECOMMERCE"},
            "start_date": "2025-10-20", "end_date": "2025-11-05"
        }, headers=auth_headers)

        project = client.get(f"/projects/{project_id}", headers=auth_headers).json()
        assert project["start_date"] == "2025-10-20"
        assert project["end_date"] == "2025-11-15"
        assert project["task_count"] == 2

    def test_duplicate_task(self, client, auth_headers, project_id, existing_task_id):
        payload = {"task_id": existing_task_id, "start_date": "2025-11-01", "end_date": "2025-11-15"}
        client.post(f"/projects/{project_id}/tasks", json=payload, headers=auth_headers)
        response = client.post(f"/projects/{project_id}/tasks", json=payload, headers=auth_headers)
        assert response.status_code == 409

    def test_requires_task_source(self, client, auth_headers, project_id):
        response = client.post(f"/projects/{project_id}/tasks", json={
            "start_date": "2025-11-01", "end_date": "2025-11-15"
        }, headers=auth_headers)
        assert response.status_code == 422

    def test_update_and_remove(self, client, auth_headers, project_id, existing_task_id):
        client.post(f"/projects/{project_id}/tasks", json={
            "task_id": existing_task_id, "start_date": "2025-11-01", "end_date": "2025-11-15"
        }, headers=auth_headers)

        response = client.put(f"/projects/{project_id}/tasks/{existing_task_id}", json={
            "end_date": "2025-11-30", "status": "completed"
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        project = client.get(f"/projects/{project_id}", headers=auth_headers).json()
        assert project["end_date"] == "2025-11-30"
        assert project["completed_task_count"] == 1
        task = client.get(f"/tasks/{existing_task_id}", headers=auth_headers).json()
        assert task["due_date"] == "2025-11-30"

        assert client.delete(f"/projects/{project_id}/tasks/{existing_task_id}",
                             headers=auth_headers).status_code == 200
        assert client.get(f"/projects/{project_id}/tasks", headers=auth_headers).json() == []
        assert client.get(f"/tasks/{existing_task_id}", headers=auth_headers).status_code == 200
