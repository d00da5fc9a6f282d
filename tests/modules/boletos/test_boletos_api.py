# tests/modules/boletos/test_boletos_api.py
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient

from conftest import API
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.boletos.services import BoletoService
from erp_otica.modules.cash.repository import CashRepository

pytestmark = pytest.mark.asyncio

async def _manual_boleto(client: AsyncClient, client_id: str, **overrides):
    payload = {"client_id": client_id, "installment_value": 150.456, "due_date": "2026-05-10T00:00:00", **overrides}
    response = await client.post(f"{API}/boletos/", json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

async def test_create_manual_boleto(authenticated_client: AsyncClient, make_client):
    client = await make_client(full_name="Ana Beatriz")
    boleto = await _manual_boleto(authenticated_client, client["id"])
    assert boleto["installment_value"] == 150.46
    assert boleto["status"] == "open"
    assert boleto["sale_id"] is None
    assert boleto["client"]["full_name"] == "Ana Beatriz"

async def test_create_boleto_validations(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    unknown = await authenticated_client.post(f"{API}/boletos/", json={
        "client_id": "64b000000000000000000000", "installment_value": 10, "due_date": "2026-05-10T00:00:00",
    })
    assert unknown.status_code == status.HTTP_404_NOT_FOUND

    beyond = await authenticated_client.post(f"{API}/boletos/", json={
        "client_id": client["id"], "installment_value": 10, "due_date": "2026-05-10T00:00:00",
        "installment_number": 3, "total_installments": 2,
    })
    assert beyond.status_code == status.HTTP_400_BAD_REQUEST

    zero = await authenticated_client.post(f"{API}/boletos/", json={
        "client_id": client["id"], "installment_value": 0, "due_date": "2026-05-10T00:00:00",
    })
    assert zero.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_pay_boleto_records_cash_entry(authenticated_client: AsyncClient, db_client, make_client):
    client = await make_client()
    boleto = await _manual_boleto(authenticated_client, client["id"], installment_value=200)

    response = await authenticated_client.post(f"{API}/boletos/{boleto['id']}/pay", json={"paid_at": "2026-05-09T15:00:00"})
    assert response.status_code == status.HTTP_200_OK
    paid = response.json()
    assert paid["status"] == "paid"
    assert paid["paid_amount"] == 200.0

    entries = await CashRepository(db_client).list_filtered()
    assert len(entries) == 1
    assert entries[0].origin == "boleto"
    assert entries[0].entry_type == "income"
    assert entries[0].amount == 200.0
    assert entries[0].entry_date == datetime(2026, 5, 9, 15, 0)

    again = await authenticated_client.post(f"{API}/boletos/{boleto['id']}/pay")
    assert again.status_code == status.HTTP_400_BAD_REQUEST

async def test_pay_with_different_amount(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    boleto = await _manual_boleto(authenticated_client, client["id"], installment_value=100)
    response = await authenticated_client.post(f"{API}/boletos/{boleto['id']}/pay", json={"paid_amount": 102.5})
    assert response.json()["paid_amount"] == 102.5

async def test_cancel_and_delete(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    to_cancel = await _manual_boleto(authenticated_client, client["id"])
    to_pay = await _manual_boleto(authenticated_client, client["id"])

    cancelled = await authenticated_client.post(f"{API}/boletos/{to_cancel['id']}/cancel")
    assert cancelled.json()["status"] == "cancelled"
    assert (await authenticated_client.post(f"{API}/boletos/{to_cancel['id']}/pay")).status_code == 400

    await authenticated_client.post(f"{API}/boletos/{to_pay['id']}/pay")
    assert (await authenticated_client.delete(f"{API}/boletos/{to_pay['id']}")).status_code == status.HTTP_409_CONFLICT
    assert (await authenticated_client.delete(f"{API}/boletos/{to_cancel['id']}")).status_code == status.HTTP_200_OK
    assert (await authenticated_client.get(f"{API}/boletos/{to_cancel['id']}")).status_code == status.HTTP_404_NOT_FOUND

async def test_list_filters_and_order(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    late = await _manual_boleto(authenticated_client, client["id"], due_date="2026-07-01T00:00:00")
    early = await _manual_boleto(authenticated_client, client["id"], due_date="2026-06-01T00:00:00")
    await authenticated_client.post(f"{API}/boletos/{late['id']}/cancel")

    everything = await authenticated_client.get(f"{API}/boletos/")
    assert [b["id"] for b in everything.json()] == [early["id"], late["id"]]

    open_only = await authenticated_client.get(f"{API}/boletos/", params={"status": "open"})
    assert [b["id"] for b in open_only.json()] == [early["id"]]

    july = await authenticated_client.get(f"{API}/boletos/", params={"due_from": "2026-06-15T00:00:00"})
    assert [b["id"] for b in july.json()] == [late["id"]]

async def test_mark_overdue_keeps_boletos_due_today(db_client, make_client):
    client = await make_client()
    repo = BoletoRepository(db_client)
    base = {"client_id": ObjectId(client["id"]), "installment_value": 50.0, "status": "open"}
    yesterday = await repo.create({**base, "due_date": datetime(2026, 3, 9)})
    today = await repo.create({**base, "due_date": datetime(2026, 3, 10)})
    paid = await repo.create({**base, "due_date": datetime(2026, 1, 1), "status": "paid"})

    marked = await BoletoService().mark_overdue(repo, now=datetime(2026, 3, 10, 18, 0))
    assert marked == 1
    assert (await repo.get_by_id(yesterday.id)).status == "overdue"
    assert (await repo.get_by_id(today.id)).status == "open"
    assert (await repo.get_by_id(paid.id)).status == "paid"

async def test_overdue_boleto_can_still_be_paid(authenticated_client: AsyncClient, db_client, make_client):
    client = await make_client()
    boleto = await _manual_boleto(authenticated_client, client["id"], due_date="2020-01-01T00:00:00")

    response = await authenticated_client.post(f"{API}/boletos/mark-overdue")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["marked_overdue"] == 1

    paid = await authenticated_client.post(f"{API}/boletos/{boleto['id']}/pay")
    assert paid.json()["status"] == "paid"

async def test_mark_overdue_requires_admin(seller_client: AsyncClient):
    response = await seller_client.post(f"{API}/boletos/mark-overdue")
    assert response.status_code == status.HTTP_403_FORBIDDEN
