"""
Tests para tareas personales
"""

from datetime import date, timedelta

import pytest


@pytest.fixture
def personal_task_data():
    return {"title": "Revisar correo", "area": "ADMIN", "subarea": "OFICINA"}


class TestPersonalTasks:

    def test_crud(self, client, auth_headers, personal_task_data):
        response = client.post("/personal-tasks/", json=personal_task_data, headers=auth_headers)
        assert response.status_code == 201
        task_id = response.json()["id"]

        response = client.put(f"/personal-tasks/{task_id}", json={"status": "completed"}, headers=auth_headers)
        assert response.json()["status"] == "completed"
        assert len(client.get("/personal-tasks/", headers=auth_headers).json()) == 1
        assert client.delete(f"/personal-tasks/{task_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/personal-tasks/{task_id}", headers=auth_headers).status_code == 404

    def test_other_users_get_404(self, client, auth_headers, other_headers, personal_task_data):
        task_id = client.post("/personal-tasks/", json=personal_task_data, headers=auth_headers).json()["id"]
        assert client.get(f"/personal-tasks/{task_id}", headers=other_headers).status_code == 404
        assert client.put(f"/personal-tasks/{task_id}", json={"title": "X"}, headers=other_headers).status_code == 404
        assert client.delete(f"/personal-tasks/{task_id}", headers=other_headers).status_code == 404
        assert client.get("/personal-tasks/", headers=other_headers).json() == []

    def test_stats(self, client, auth_headers, personal_task_data):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        client.post("/personal-tasks/", json={**personal_task_data, "priority": "high", "due_date": yesterday},
                    headers=auth_headers)
        client.post("/personal-tasks/", json={**personal_task_data, "status": "completed", "due_date": yesterday},
                    headers=auth_headers)
        client.post("/personal-tasks/", json={**personal_task_data, "status": "in_progress"}, headers=auth_headers)

        stats = client.get("/personal-tasks/stats", headers=auth_headers).json()
        assert stats == {
            "total": 3, "pending": 1, "in_progress": 1, "completed": 1, "high_priority": 1, "overdue": 1
        }
