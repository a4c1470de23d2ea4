"""
Tests para el módulo de Notificaciones
"""

import pytest


@pytest.fixture
def tester_id(client, auth_headers):
    return client.get("/auth/me", headers=auth_headers).json()["id"]


def create_notification(client, headers, user_id, title="Aviso"):
    response = client.post("/notifications/", json={
        "user_id": user_id, "type": "deadline_approaching", "title": title, "message": "Vence pronto"
    }, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


class TestNotifications:

    def test_create_and_list(self, client, auth_headers, tester_id):
        create_notification(client, auth_headers, tester_id)
        data = client.get("/notifications/", headers=auth_headers).json()
        assert len(data) == 1
        assert data[0]["is_read"] is False

    def test_create_for_missing_user(self, client, auth_headers):
        response = client.post("/notifications/", json={
            "user_id": 999, "type": "overdue", "title": "X", "message": "Y"
        }, headers=auth_headers)
        assert response.status_code == 404

    def test_mark_read_and_unread_count(self, client, auth_headers, tester_id):
        first = create_notification(client, auth_headers, tester_id)
        create_notification(client, auth_headers, tester_id, "Otro aviso")
        assert client.get("/notifications/unread-count", headers=auth_headers).json() == {"count": 2}

        response = client.patch(f"/notifications/{first}/read", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["read_at"] is not None
        assert client.get("/notifications/unread-count", headers=auth_headers).json() == {"count": 1}

        response = client.patch("/notifications/mark-all-read", headers=auth_headers)
        assert response.json()["count"] == 1
        assert client.get("/notifications/", params={"unread_only": True}, headers=auth_headers).json() == []

    def test_notifications_are_private(self, client, auth_headers, other_headers, tester_id):
        notification_id = create_notification(client, auth_headers, tester_id)
        assert client.patch(f"/notifications/{notification_id}/read", headers=other_headers).status_code == 404
        assert client.delete(f"/notifications/{notification_id}", headers=other_headers).status_code == 404
        assert client.delete(f"/notifications/{notification_id}", headers=auth_headers).status_code == 200
