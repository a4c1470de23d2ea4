"""
Tests para el módulo de Autenticación
"""

import pytest


@pytest.fixture
def user_data():
    return {
        "username": "Maria.Lopez",
        "email": "Maria@Example.com",
        "password": "secreto123",
        "first_name": "María",
    }


class TestRegister:

    def test_register_normalizes_username_and_email(self, client, user_data):
        response = client.post("/auth/register", json=user_data)
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "maria.lopez"
        assert data["email"] == "maria@example.com"
        assert data["is_active"] is True
        assert "password" not in data

    def test_register_duplicate_email(self, client, user_data):
        client.post("/auth/register", json=user_data)
        user_data["username"] = "otra"
        response = client.post("/auth/register", json=user_data)
        assert response.status_code == 409

    def test_register_duplicate_username(self, client, user_data):
        client.post("/auth/register", json=user_data)
        user_data["email"] = "otra@example.com"
        response = client.post("/auth/register", json=user_data)
        assert response.status_code == 409

    def test_register_invalid_username(self, client, user_data):
        user_data["username"] = "maría lópez!"
        assert client.post("/auth/register", json=user_data).status_code == 422

    def test_register_short_password(self, client, user_data):
        user_data["password"] = "123"
        assert client.post("/auth/register", json=user_data).status_code == 422


class TestLogin:

    def test_login_with_username_or_email(self, client, user_data):
        client.post("/auth/register", json=user_data)

        by_username = client.post("/auth/login", json={"login": "maria.lopez", "password": "secreto123"})
        assert by_username.status_code == 200
        assert by_username.json()["token_type"] == "bearer"
        assert by_username.json()["user"]["last_login"] is not None

        by_email = client.post("/auth/login", json={"login": "MARIA@example.com", "password": "secreto123"})
        assert by_email.status_code == 200

    def test_login_wrong_password(self, client, user_data):
        client.post("/auth/register", json=user_data)
        response = client.post("/auth/login", json={"login": "maria.lopez", "password": "incorrecta"})
        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        response = client.post("/auth/login", json={"login": "nadie", "password": "secreto123"})
        assert response.status_code == 401


class TestCurrentUser:

    def test_me(self, client, auth_headers):
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "tester"

    def test_me_invalid_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer no-es-un-token"})
        assert response.status_code == 401

    def test_me_without_token(self, client):
        assert client.get("/auth/me").status_code in (401, 403)
