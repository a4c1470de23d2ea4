"""
Tests de auditoría y reparación de apartados
"""

import pytest

from app.modules.produccion.models import ProduccionInventory


@pytest.fixture
def stocked_row(client, auth_headers, catalog, make_product, add_esmaltado):
    """Fila ESMALTADO con 3 piezas apartadas por un kit."""
    taza = make_product()
    row = add_esmaltado(taza["id"], catalog["azul_id"], 5)
    kit = client.post("/ecommerce/kits/", json={
        "name": "Kit Tres",
        "items": [{"product_id": taza["id"], "esmalte_color_id": catalog["azul_id"], "quantity": 3}],
    }, headers=auth_headers).json()
    response = client.post(f"/ecommerce/kits/{kit['id']}/stock", json={"adjustment": 1}, headers=auth_headers)
    assert response.status_code == 200, response.text
    return row


class TestApartadosAudit:

    def test_requires_authentication(self, client):
        assert client.get("/inventory/apartados/audit").status_code in (401, 403)

    def test_consistent_after_allocations(self, client, auth_headers, stocked_row):
        response = client.get("/inventory/apartados/audit", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"consistent": True, "mismatches": []}

    def test_detects_and_repairs_drift(self, client, auth_headers, db_session, stocked_row):
        inventory = db_session.get(ProduccionInventory, stocked_row["id"])
        inventory.apartados = 1
        db_session.commit()

        data = client.get("/inventory/apartados/audit", headers=auth_headers).json()
        assert data["consistent"] is False
        assert data["mismatches"] == [{
            "inventory_kind": "CERAMICA",
            "inventory_id": stocked_row["id"],
            "product_name": "Taza Clásica",
            "quantity": 5,
            "apartados": 1,
            "expected_apartados": 3,
        }]

        repaired = client.post("/inventory/apartados/repair", headers=auth_headers).json()
        assert repaired["consistent"] is True
        assert len(repaired["mismatches"]) == 1

        data = client.get("/inventory/apartados/audit", headers=auth_headers).json()
        assert data["consistent"] is True

    def test_repair_without_drift(self, client, auth_headers, stocked_row):
        response = client.post("/inventory/apartados/repair", headers=auth_headers)
        assert response.json() == {"consistent": True, "mismatches": []}
