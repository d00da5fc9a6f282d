# tests/modules/sales/test_sales_api.py
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi import status
from httpx import AsyncClient

from conftest import API, CPF_B
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.cash.repository import CashRepository
from erp_otica.modules.products.repository import ProductRepository

pytestmark = pytest.mark.asyncio

async def _stock(db_client, product_id) -> int:
    return (await ProductRepository(db_client).get_by_id(product_id)).stock_quantity

async def _create_sale(client: AsyncClient, client_id, items, **extra):
    response = await client.post(f"{API}/sales/", json={"client_id": client_id, "items": items, **extra})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

async def test_create_upfront_sale(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    frame = await make_product(name="Armação", stock_quantity=5)
    lens = await make_product(name="Lente", stock_quantity=10)

    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[
            {"product_id": frame["id"], "quantity": 1, "unit_price": 250.0},
            {"product_id": lens["id"], "quantity": 2, "unit_price": 180.5},
        ],
        sale_date="2026-03-15T10:00:00",
        payment={"down_payment": 611.0, "method": "pix"},
    )

    assert sale["ref"] == "VND-2026-00001"
    assert sale["status"] == "pending"
    assert sale["total_amount"] == 611.0
    assert [i["subtotal"] for i in sale["items"]] == [250.0, 361.0]
    assert [i["product_name"] for i in sale["items"]] == ["Armação", "Lente"]
    assert sale["client"]["full_name"] == client["full_name"]
    assert sale["payment"]["remaining_amount"] == 0.0
    assert sale["payment"]["installments"] is None

    assert await _stock(db_client, frame["id"]) == 4
    assert await _stock(db_client, lens["id"]) == 8

    entries = await CashRepository(db_client).list_filtered()
    assert len(entries) == 1
    assert entries[0].origin == "sale" and entries[0].amount == 611.0
    assert await BoletoRepository(db_client).count() == 0

async def test_installment_sale_generates_boletos(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product(stock_quantity=1)

    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[{"product_id": product["id"], "quantity": 1, "unit_price": 1100.0}],
        sale_date="2026-01-31T12:00:00",
        payment={"down_payment": 100.0, "method": "boleto", "condition": "installments", "installments": 3},
    )
    assert sale["payment"]["remaining_amount"] == 1000.0

    boletos = await BoletoRepository(db_client).list_for_sale(ObjectId(sale["id"]))
    assert [b.installment_value for b in boletos] == [333.33, 333.33, 333.34]
    assert [b.due_date for b in boletos] == [
        datetime(2026, 2, 28, 12, 0), datetime(2026, 3, 31, 12, 0), datetime(2026, 4, 30, 12, 0),
    ]
    assert all(b.status == "open" and b.total_installments == 3 for b in boletos)

async def test_stock_may_go_negative(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product(stock_quantity=0)
    await _create_sale(authenticated_client, client["id"], items=[{"product_id": product["id"], "quantity": 2, "unit_price": 10}])
    assert await _stock(db_client, product["id"]) == -2

async def test_down_payment_above_total_is_rejected(authenticated_client: AsyncClient, make_client, make_product):
    client = await make_client()
    product = await make_product()
    response = await authenticated_client.post(f"{API}/sales/", json={
        "client_id": client["id"],
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 100}],
        "payment": {"down_payment": 150},
    })
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_balance_too_small_for_installments_is_rejected(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product()
    response = await authenticated_client.post(f"{API}/sales/", json={
        "client_id": client["id"],
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 100.02}],
        "payment": {"down_payment": 100, "condition": "installments", "installments": 3},
    })
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "parcelas" in response.json()["errors"][0]["message"]
    assert await BoletoRepository(db_client).count() == 0

async def test_empty_items_rejected(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    response = await authenticated_client.post(f"{API}/sales/", json={"client_id": client["id"], "items": []})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_unknown_client_or_product_is_404(authenticated_client: AsyncClient, make_client, make_product):
    client = await make_client()
    product = await make_product()
    missing = "64b000000000000000000000"
    no_client = await authenticated_client.post(f"{API}/sales/", json={
        "client_id": missing, "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 1}],
    })
    assert no_client.status_code == status.HTTP_404_NOT_FOUND
    no_product = await authenticated_client.post(f"{API}/sales/", json={
        "client_id": client["id"], "items": [{"product_id": missing, "quantity": 1, "unit_price": 1}],
    })
    assert no_product.status_code == status.HTTP_404_NOT_FOUND

async def test_status_transitions(authenticated_client: AsyncClient, make_client, make_product):
    client = await make_client()
    product = await make_product()
    sale = await _create_sale(authenticated_client, client["id"], items=[{"product_id": product["id"], "quantity": 1, "unit_price": 50}])
    url = f"{API}/sales/{sale['id']}/status"

    done = await authenticated_client.patch(url, json={"status": "completed"})
    assert done.status_code == status.HTTP_200_OK
    assert done.json()["completed_at"] is not None

    back = await authenticated_client.patch(url, json={"status": "pending"})
    assert back.status_code == status.HTTP_400_BAD_REQUEST

    cancelled = await authenticated_client.patch(url, json={"status": "cancelled"})
    assert cancelled.json()["status"] == "cancelled"

    terminal = await authenticated_client.patch(url, json={"status": "completed"})
    assert terminal.status_code == status.HTTP_400_BAD_REQUEST

async def test_cancel_restores_stock_and_financials(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product(stock_quantity=3)
    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[{"product_id": product["id"], "quantity": 2, "unit_price": 200}],
        payment={"down_payment": 100, "condition": "installments", "installments": 2},
    )
    assert await _stock(db_client, product["id"]) == 1

    response = await authenticated_client.patch(f"{API}/sales/{sale['id']}/status", json={"status": "cancelled"})
    assert response.status_code == status.HTTP_200_OK

    assert await _stock(db_client, product["id"]) == 3
    assert await CashRepository(db_client).count() == 0
    boletos = await BoletoRepository(db_client).list_by(limit=0)
    assert len(boletos) == 2 and all(b.status == "cancelled" for b in boletos)

async def test_cancel_with_paid_boleto_conflicts(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product()
    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[{"product_id": product["id"], "quantity": 1, "unit_price": 300}],
        payment={"condition": "installments", "installments": 3},
    )
    boletos = await authenticated_client.get(f"{API}/boletos/", params={"sale_id": sale["id"]})
    first = boletos.json()[0]
    paid = await authenticated_client.post(f"{API}/boletos/{first['id']}/pay")
    assert paid.status_code == status.HTTP_200_OK

    cancel = await authenticated_client.patch(f"{API}/sales/{sale['id']}/status", json={"status": "cancelled"})
    assert cancel.status_code == status.HTTP_409_CONFLICT
    edit = await authenticated_client.put(f"{API}/sales/{sale['id']}", json={
        "client_id": client["id"], "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 10}],
    })
    assert edit.status_code == status.HTTP_409_CONFLICT
    delete = await authenticated_client.delete(f"{API}/sales/{sale['id']}")
    assert delete.status_code == status.HTTP_409_CONFLICT

async def test_update_sale_redoes_stock_and_boletos(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    old_product = await make_product(name="Antiga", stock_quantity=5)
    new_product = await make_product(name="Nova", stock_quantity=5)
    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[{"product_id": old_product["id"], "quantity": 2, "unit_price": 100}],
        payment={"down_payment": 50, "condition": "installments", "installments": 2},
    )

    response = await authenticated_client.put(f"{API}/sales/{sale['id']}", json={
        "client_id": client["id"],
        "items": [{"product_id": new_product["id"], "quantity": 1, "unit_price": 400}],
        "payment": {"down_payment": 100, "condition": "installments", "installments": 3},
    })
    assert response.status_code == status.HTTP_200_OK, response.text
    updated = response.json()
    assert updated["total_amount"] == 400.0
    assert updated["ref"] == sale["ref"]
    assert updated["sale_date"] == sale["sale_date"]

    assert await _stock(db_client, old_product["id"]) == 5
    assert await _stock(db_client, new_product["id"]) == 4

    boletos = await BoletoRepository(db_client).list_by(limit=0)
    assert [b.installment_value for b in boletos] == [100.0, 100.0, 100.0]
    entries = await CashRepository(db_client).list_by(limit=0)
    assert [e.amount for e in entries] == [100.0]

async def test_cancelled_sale_cannot_be_edited(authenticated_client: AsyncClient, make_client, make_product):
    client = await make_client()
    product = await make_product()
    items = [{"product_id": product["id"], "quantity": 1, "unit_price": 10}]
    sale = await _create_sale(authenticated_client, client["id"], items=items)
    await authenticated_client.patch(f"{API}/sales/{sale['id']}/status", json={"status": "cancelled"})
    response = await authenticated_client.put(f"{API}/sales/{sale['id']}", json={"client_id": client["id"], "items": items})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_delete_sale(authenticated_client: AsyncClient, db_client, make_client, make_product):
    client = await make_client()
    product = await make_product(stock_quantity=2)
    sale = await _create_sale(
        authenticated_client, client["id"],
        items=[{"product_id": product["id"], "quantity": 2, "unit_price": 90}],
        payment={"condition": "installments", "installments": 2},
    )
    response = await authenticated_client.delete(f"{API}/sales/{sale['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert (await authenticated_client.get(f"{API}/sales/{sale['id']}")).status_code == status.HTTP_404_NOT_FOUND
    assert await BoletoRepository(db_client).count() == 0
    assert await _stock(db_client, product["id"]) == 2

async def test_delete_sale_requires_admin(seller_client: AsyncClient):
    response = await seller_client.delete(f"{API}/sales/64b000000000000000000000")
    assert response.status_code == status.HTTP_403_FORBIDDEN

async def test_list_sales_filters(authenticated_client: AsyncClient, make_client, make_product):
    maria = await make_client(full_name="Maria da Silva")
    carlos = await make_client(full_name="Carlos Lima", cpf=CPF_B)
    product = await make_product()
    item = [{"product_id": product["id"], "quantity": 1, "unit_price": 100}]
    older = await _create_sale(authenticated_client, maria["id"], items=item, sale_date="2026-01-10T09:00:00")
    newer = await _create_sale(authenticated_client, carlos["id"], items=item, sale_date="2026-02-10T09:00:00")
    await authenticated_client.patch(f"{API}/sales/{older['id']}/status", json={"status": "completed"})

    everything = await authenticated_client.get(f"{API}/sales/")
    assert [s["id"] for s in everything.json()] == [newer["id"], older["id"]]

    by_name = await authenticated_client.get(f"{API}/sales/", params={"search": "maria"})
    assert [s["id"] for s in by_name.json()] == [older["id"]]

    by_status = await authenticated_client.get(f"{API}/sales/", params={"status": "pending"})
    assert [s["id"] for s in by_status.json()] == [newer["id"]]

    by_client = await authenticated_client.get(f"{API}/sales/", params={"client_id": carlos["id"]})
    assert [s["id"] for s in by_client.json()] == [newer["id"]]

    by_period = await authenticated_client.get(f"{API}/sales/", params={"start": "2026-02-01T00:00:00", "end": "2026-02-28T23:59:59"})
    assert [s["id"] for s in by_period.json()] == [newer["id"]]

    nobody = await authenticated_client.get(f"{API}/sales/", params={"search": "ninguém"})
    assert nobody.json() == []
