"""
Tests para el módulo de Tareas

Cubren CRUD, permisos del dueño, subtareas, comentarios, adjuntos y las
notificaciones que generan altas y cambios de estado.
"""

import pytest


# ===== FIXTURES =====

@pytest.fixture
def sample_task_data():
    return {
        "title": "Preparar horneado",
        "description": "Cargar horno 2",
        "area": "PRODUCCION",
        "subarea": "HORNO",
        "start_date": "2025-03-01",
        "end_date": "2025-03-10",
        "due_date": "2025-03-10",
    }


@pytest.fixture
def task_id(client, auth_headers, sample_task_data):
    response = client.post("/tasks/", json=sample_task_data, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["id"]


# ===== TESTS DE TAREAS =====

class TestTasks:

    def test_create_task_defaults(self, client, auth_headers, sample_task_data):
        response = client.post("/tasks/", json=sample_task_data, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["priority"] == "medium"
        assert data["status"] == "pending"
        assert data["username"] == "tester"

    def test_create_requires_area_and_subarea(self, client, auth_headers, sample_task_data):
        sample_task_data["subarea"] = "  "
        assert client.post("/tasks/", json=sample_task_data, headers=auth_headers).status_code == 422

    def test_invalid_priority(self, client, auth_headers, sample_task_data):
        sample_task_data["priority"] = "urgent"
        assert client.post("/tasks/", json=sample_task_data, headers=auth_headers).status_code == 422

    def test_start_after_end(self, client, auth_headers, sample_task_data):
        sample_task_data["start_date"] = "2025-04-01"
        assert client.post("/tasks/", json=sample_task_data, headers=auth_headers).status_code == 422

    def test_filters(self, client, auth_headers, sample_task_data):
        client.post("/tasks/", json=sample_task_data, headers=auth_headers)
        client.post("/tasks/", json={**sample_task_data, "title": "Inventario", "priority": "high",
                                     "area": "ALMACEN", "subarea": "CONTEO"}, headers=auth_headers)

        response = client.get("/tasks/", params={"priority": "high"}, headers=auth_headers)
        assert [t["title"] for t in response.json()] == ["Inventario"]
        response = client.get("/tasks/", params={"area": "PRODUCCION", "search": "horno"}, headers=auth_headers)
        assert len(response.json()) == 1

    def test_owner_updates_and_deletes(self, client, auth_headers, task_id):
        response = client.put(f"/tasks/{task_id}", json={"title": "Horneado lote 7", "priority": "high"},
                              headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Horneado lote 7"
        assert client.delete(f"/tasks/{task_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/tasks/{task_id}", headers=auth_headers).status_code == 404

    def test_other_user_restrictions(self, client, auth_headers, other_headers, task_id):
        response = client.put(f"/tasks/{task_id}", json={"title": "Ajena"}, headers=other_headers)
        assert response.status_code == 403
        assert client.delete(f"/tasks/{task_id}", headers=other_headers).status_code == 403

        response = client.put(f"/tasks/{task_id}", json={"status": "in_progress"}, headers=other_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    def test_update_rejects_inverted_dates(self, client, auth_headers, task_id):
        response = client.put(f"/tasks/{task_id}", json={"end_date": "2025-02-01"}, headers=auth_headers)
        assert response.status_code == 400


# ===== TESTS DE NOTIFICACIONES =====

class TestTaskNotifications:

    def test_new_task_notifies_other_users(self, client, auth_headers, other_headers, sample_task_data):
        client.post("/tasks/", json=sample_task_data, headers=auth_headers)

        own = client.get("/notifications/", headers=auth_headers).json()
        others = client.get("/notifications/", headers=other_headers).json()
        assert own == []
        assert len(others) == 1
        assert others[0]["type"] == "new_task"
        assert others[0]["task_title"] == "Preparar horneado"

    def test_status_change_by_other_user_notifies_owner(self, client, auth_headers, other_headers, task_id):
        client.put(f"/tasks/{task_id}", json={"status": "completed"}, headers=other_headers)
        notifications = client.get("/notifications/", params={"unread_only": True}, headers=auth_headers).json()
        assert [n["type"] for n in notifications] == ["status_change"]

    def test_owner_status_change_does_not_notify(self, client, auth_headers, task_id):
        client.put(f"/tasks/{task_id}", json={"status": "completed"}, headers=auth_headers)
        assert client.get("/notifications/unread-count", headers=auth_headers).json() == {"count": 0}


# ===== TESTS DE SUBTAREAS =====

class TestSubtasks:

    def test_subtask_lifecycle(self, client, auth_headers, task_id):
        response = client.post("/subtasks/", json={"task_id": task_id, "name": "Esmaltar"}, headers=auth_headers)
        assert response.status_code == 201
        subtask_id = response.json()["id"]
        assert response.json()["completed"] is False

        response = client.put(f"/subtasks/{subtask_id}", json={"completed": True}, headers=auth_headers)
        assert response.json()["status"] == "completed"

        assert len(client.get(f"/subtasks/task/{task_id}", headers=auth_headers).json()) == 1
        assert client.delete(f"/subtasks/{subtask_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/subtasks/task/{task_id}", headers=auth_headers).json() == []

    def test_subtask_outside_parent_range(self, client, auth_headers, task_id):
        response = client.post("/subtasks/", json={
            "task_id": task_id, "name": "Fuera de rango", "start_date": "2025-02-20"
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_subtask_for_missing_task(self, client, auth_headers):
        response = client.post("/subtasks/", json={"task_id": 999, "name": "Huérfana"}, headers=auth_headers)
        assert response.status_code == 404


# ===== TESTS DE COMENTARIOS Y ADJUNTOS =====

class TestComments:

    def test_only_author_edits(self, client, auth_headers, other_headers, task_id):
        response = client.post(f"/tasks/{task_id}/comments", json={"comment": "Listo el horno"},
                               headers=other_headers)
        assert response.status_code == 201
        comment_id = response.json()["id"]
        assert response.json()["username"] == "otro"

        url = f"/tasks/{task_id}/comments/{comment_id}"
        assert client.put(url, json={"comment": "Editado"}, headers=auth_headers).status_code == 403
        assert client.delete(url, headers=auth_headers).status_code == 403
        assert client.put(url, json={"comment": "Editado"}, headers=other_headers).json()["comment"] == "Editado"
        assert client.delete(url, headers=other_headers).status_code == 200
        assert client.get(f"/tasks/{task_id}/comments", headers=auth_headers).json() == []

    def test_empty_comment(self, client, auth_headers, task_id):
        response = client.post(f"/tasks/{task_id}/comments", json={"comment": "   "}, headers=auth_headers)
        assert response.status_code == 422

    def test_attachments(self, client, auth_headers, task_id):
        attachment = {"file_name": "foto.jpg", "file_url": "https://files.example.com/foto.jpg"}
        response = client.post(f"/tasks/{task_id}/attachments", json=attachment, headers=auth_headers)
        assert response.status_code == 201
        task_attachment_id = response.json()["id"]

        comment_id = client.post(f"/tasks/{task_id}/comments", json={"comment": "Con foto"},
                                 headers=auth_headers).json()["id"]
        response = client.post(f"/tasks/{task_id}/comments/{comment_id}/attachments", json=attachment,
                               headers=auth_headers)
        assert response.status_code == 201

        assert len(client.get(f"/tasks/{task_id}/attachments", headers=auth_headers).json()) == 1
        assert len(client.get(f"/tasks/{task_id}/comments/{comment_id}/attachments",
                              headers=auth_headers).json()) == 1
        assert client.delete(f"/tasks/attachments/{task_attachment_id}", headers=auth_headers).status_code == 200
