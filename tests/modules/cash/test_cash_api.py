# tests/modules/cash/test_cash_api.py
import pytest
from fastapi import status
from httpx import AsyncClient

from conftest import API

pytestmark = pytest.mark.asyncio

async def _entry(client: AsyncClient, entry_type: str, amount: float, entry_date: str, description: str = "Lançamento"):
    response = await client.post(f"{API}/cash/", json={
        "entry_type": entry_type, "amount": amount, "description": description, "entry_date": entry_date,
    })
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

async def test_create_manual_entry(authenticated_client: AsyncClient):
    entry = await _entry(authenticated_client, "expense", 89.999, "2026-04-02T10:00:00", description="Conta de luz")
    assert entry["origin"] == "manual"
    assert entry["amount"] == 90.0
    assert entry["description"] == "Conta de luz"

@pytest.mark.parametrize("payload", [
    {"entry_type": "income", "amount": 0, "description": "Zero"},
    {"entry_type": "income", "amount": 10, "description": "X"},
    {"entry_type": "transfer", "amount": 10, "description": "Tipo inválido"},
])
async def test_create_entry_validation(authenticated_client: AsyncClient, payload):
    response = await authenticated_client.post(f"{API}/cash/", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_list_and_summary_by_period(authenticated_client: AsyncClient):
    await _entry(authenticated_client, "income", 500, "2026-04-01T09:00:00")
    await _entry(authenticated_client, "expense", 120.5, "2026-04-15T09:00:00")
    await _entry(authenticated_client, "income", 1000, "2026-05-03T09:00:00")

    april = {"start": "2026-04-01T00:00:00", "end": "2026-04-30T23:59:59"}
    listed = await authenticated_client.get(f"{API}/cash/", params=april)
    assert [e["amount"] for e in listed.json()] == [120.5, 500.0]

    expenses = await authenticated_client.get(f"{API}/cash/", params={"entry_type": "expense"})
    assert len(expenses.json()) == 1

    summary = (await authenticated_client.get(f"{API}/cash/summary", params=april)).json()
    assert summary["total_income"] == 500.0
    assert summary["total_expense"] == 120.5
    assert summary["balance"] == 379.5

    overall = (await authenticated_client.get(f"{API}/cash/summary")).json()
    assert overall["balance"] == 1379.5

async def test_only_manual_entries_can_be_deleted(authenticated_client: AsyncClient, make_client, make_product):
    manual = await _entry(authenticated_client, "expense", 30, "2026-04-02T10:00:00")
    client = await make_client()
    product = await make_product()
    await authenticated_client.post(f"{API}/sales/", json={
        "client_id": client["id"],
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 200}],
        "payment": {"down_payment": 200, "method": "cash"},
    })
    from_sale = (await authenticated_client.get(f"{API}/cash/", params={"entry_type": "income"})).json()[0]
    assert from_sale["origin"] == "sale"
    assert from_sale["sale_id"] is not None

    assert (await authenticated_client.delete(f"{API}/cash/{from_sale['id']}")).status_code == status.HTTP_409_CONFLICT
    assert (await authenticated_client.delete(f"{API}/cash/{manual['id']}")).status_code == status.HTTP_200_OK
    assert (await authenticated_client.delete(f"{API}/cash/{manual['id']}")).status_code == status.HTTP_404_NOT_FOUND
