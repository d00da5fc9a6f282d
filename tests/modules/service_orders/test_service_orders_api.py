# tests/modules/service_orders/test_service_orders_api.py
import re

import pytest
from fastapi import status
from httpx import AsyncClient

from conftest import API, CPF_B

pytestmark = pytest.mark.asyncio

async def _open_order(client: AsyncClient, client_id: str, **extra):
    response = await client.post(f"{API}/service-orders/", json={
        "client_id": client_id, "description": "Lentes multifocais", **extra,
    })
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

async def test_create_copies_client_prescription(authenticated_client: AsyncClient, make_client):
    client = await make_client(prescription={"right_sphere": "-2,00", "left_sphere": "-1,75", "addition": "+1,50"})
    order = await _open_order(authenticated_client, client["id"], lab="Laboratório Central")

    assert re.fullmatch(r"OS-\d{4}-00001", order["ref"])
    assert order["status"] == "open"
    assert order["prescription"]["right_sphere"] == "-2,00"
    assert order["prescription"]["addition"] == "+1,50"

    # A OS guarda uma cópia: mudar o cadastro depois não altera a ordem
    await authenticated_client.put(f"{API}/clients/{client['id']}", json={"prescription": {"right_sphere": "-3,00"}})
    fetched = await authenticated_client.get(f"{API}/service-orders/{order['id']}")
    assert fetched.json()["prescription"]["right_sphere"] == "-2,00"

async def test_explicit_prescription_wins(authenticated_client: AsyncClient, make_client):
    client = await make_client(prescription={"right_sphere": "-2,00"})
    order = await _open_order(authenticated_client, client["id"], prescription={"right_sphere": "+0,50"})
    assert order["prescription"]["right_sphere"] == "+0,50"

async def test_create_with_sale_checks_owner(authenticated_client: AsyncClient, make_client, make_product):
    owner = await make_client(full_name="Dono da Venda")
    other = await make_client(full_name="Outra Pessoa", cpf=CPF_B)
    product = await make_product()
    sale = (await authenticated_client.post(f"{API}/sales/", json={
        "client_id": owner["id"], "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 400}],
    })).json()

    linked = await _open_order(authenticated_client, owner["id"], sale_id=sale["id"])
    assert linked["sale_id"] == sale["id"]

    wrong_owner = await authenticated_client.post(f"{API}/service-orders/", json={
        "client_id": other["id"], "sale_id": sale["id"], "description": "Lentes simples",
    })
    assert wrong_owner.status_code == status.HTTP_400_BAD_REQUEST

    missing_sale = await authenticated_client.post(f"{API}/service-orders/", json={
        "client_id": owner["id"], "sale_id": "64b000000000000000000000", "description": "Lentes simples",
    })
    assert missing_sale.status_code == status.HTTP_404_NOT_FOUND

async def test_status_flow(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    order = await _open_order(authenticated_client, client["id"])
    url = f"{API}/service-orders/{order['id']}/status"

    skip_ahead = await authenticated_client.patch(url, json={"status": "delivered"})
    assert skip_ahead.status_code == status.HTTP_400_BAD_REQUEST

    for step in ("in_production", "ready"):
        response = await authenticated_client.patch(url, json={"status": step})
        assert response.json()["status"] == step
        assert response.json()["delivered_at"] is None

    delivered = await authenticated_client.patch(url, json={"status": "delivered"})
    assert delivered.json()["delivered_at"] is not None

    assert (await authenticated_client.patch(url, json={"status": "cancelled"})).status_code == status.HTTP_400_BAD_REQUEST
    edit = await authenticated_client.put(f"{API}/service-orders/{order['id']}", json={"lab": "Outro"})
    assert edit.status_code == status.HTTP_400_BAD_REQUEST
    assert (await authenticated_client.delete(f"{API}/service-orders/{order['id']}")).status_code == status.HTTP_409_CONFLICT

async def test_update_open_order(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    order = await _open_order(authenticated_client, client["id"])
    response = await authenticated_client.put(f"{API}/service-orders/{order['id']}", json={
        "lab": "Laboratório Sul", "expected_date": "2026-07-20T00:00:00",
    })
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["lab"] == "Laboratório Sul"
    assert response.json()["description"] == "Lentes multifocais"

async def test_list_and_delete(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    first = await _open_order(authenticated_client, client["id"])
    second = await _open_order(authenticated_client, client["id"])
    await authenticated_client.patch(f"{API}/service-orders/{second['id']}/status", json={"status": "in_production"})

    open_orders = await authenticated_client.get(f"{API}/service-orders/", params={"status": "open"})
    assert [o["id"] for o in open_orders.json()] == [first["id"]]

    assert (await authenticated_client.delete(f"{API}/service-orders/{second['id']}")).status_code == status.HTTP_409_CONFLICT
    assert (await authenticated_client.delete(f"{API}/service-orders/{first['id']}")).status_code == status.HTTP_200_OK

@pytest.mark.parametrize("payload", [{"description": None}, {"prescription": None}])
async def test_update_rejects_null_for_required_fields(authenticated_client: AsyncClient, make_client, payload):
    client = await make_client()
    order = await _open_order(authenticated_client, client["id"])

    response = await authenticated_client.put(f"{API}/service-orders/{order['id']}", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    fetched = await authenticated_client.get(f"{API}/service-orders/{order['id']}")
    assert fetched.status_code == status.HTTP_200_OK
    assert fetched.json()["description"] == "Lentes multifocais"
