"""
Configuración compartida de pytest

Apunta la aplicación a SQLite en memoria antes de importarla, recrea el
esquema en cada test y expone clientes autenticados.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.database import Base, SessionLocal, sync_engine


# ===== FIXTURES =====

@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def register_and_login(client: TestClient, username: str) -> dict:
    """Registra un usuario y devuelve los headers Bearer para usarlo."""
    response = client.post("/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": "secreto123",
    })
    assert response.status_code == 201, response.text
    response = client.post("/auth/login", json={"login": username, "password": "secreto123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return register_and_login(client, "tester")


@pytest.fixture
def other_headers(client):
    return register_and_login(client, "otro")


# ===== PRODUCCIÓN =====

@pytest.fixture
def catalog(client, auth_headers):
    """Tipo y dos colores de esmalte para armar productos de prueba."""
    tipo = client.post("/produccion/tipo", json={"name": "TAZA"}, headers=auth_headers).json()
    azul = client.post("/produccion/esmalte-color", json={"color": "AZUL", "hex_code": "#0000FF"},
                       headers=auth_headers).json()
    verde = client.post("/produccion/esmalte-color", json={"color": "VERDE"}, headers=auth_headers).json()
    return {"tipo_id": tipo["id"], "azul_id": azul["id"], "verde_id": verde["id"]}


@pytest.fixture
def make_product(client, auth_headers, catalog):
    def _make(name="Taza Clásica", category="CERAMICA"):
        response = client.post("/produccion/products", json={
            "name": name,
            "stage": "CRUDO",
            "tipo_id": catalog["tipo_id"],
            "product_category": category,
            "costo_pasta": "10.50",
            "costo_mano_obra": "5",
        }, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def add_esmaltado(client, auth_headers):
    """Lleva piezas de CRUDO a ESMALTADO y devuelve la fila de inventario resultante."""
    def _add(product_id: int, color_id: int, quantity: int):
        payload = {"product_id": product_id, "quantity": quantity}
        assert client.post("/produccion/inventory/crudo", json=payload, headers=auth_headers).status_code == 200
        assert client.post("/produccion/inventory/sancochado", json=payload, headers=auth_headers).status_code == 200
        response = client.post("/produccion/inventory/esmaltado", json={**payload, "esmalte_color_id": color_id},
                               headers=auth_headers)
        assert response.status_code == 200, response.text
        return response.json()["inventory"][1]
    return _add
