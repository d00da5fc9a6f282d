# tests/modules/appointments/test_appointments_api.py
import pytest
from fastapi import status
from httpx import AsyncClient

from conftest import API, CPF_B

pytestmark = pytest.mark.asyncio

async def _schedule(client: AsyncClient, client_id: str, scheduled_at: str, **extra):
    response = await client.post(f"{API}/appointments/", json={"client_id": client_id, "scheduled_at": scheduled_at, **extra})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

async def test_create_appointment(authenticated_client: AsyncClient, make_client):
    client = await make_client(full_name="Paulo Mendes")
    appointment = await _schedule(authenticated_client, client["id"], "2026-06-01T14:30:00", notes="Exame de vista")
    assert appointment["outcome"] == "open"
    assert appointment["attended"] is False and appointment["missed"] is False
    assert appointment["client"]["full_name"] == "Paulo Mendes"

async def test_create_rejects_both_flags(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    response = await authenticated_client.post(f"{API}/appointments/", json={
        "client_id": client["id"], "scheduled_at": "2026-06-01T14:30:00", "attended": True, "missed": True,
    })
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_create_for_unknown_client(authenticated_client: AsyncClient):
    response = await authenticated_client.post(f"{API}/appointments/", json={
        "client_id": "64b000000000000000000000", "scheduled_at": "2026-06-01T14:30:00",
    })
    assert response.status_code == status.HTTP_404_NOT_FOUND

async def test_list_is_chronological_and_filtered(authenticated_client: AsyncClient, make_client):
    ana = await make_client(full_name="Ana Beatriz")
    bruno = await make_client(full_name="Bruno Costa", cpf=CPF_B)
    later = await _schedule(authenticated_client, ana["id"], "2026-06-03T09:00:00")
    earlier = await _schedule(authenticated_client, bruno["id"], "2026-06-01T09:00:00")
    middle = await _schedule(authenticated_client, ana["id"], "2026-06-02T09:00:00")

    agenda = await authenticated_client.get(f"{API}/appointments/")
    assert [a["id"] for a in agenda.json()] == [earlier["id"], middle["id"], later["id"]]

    window = await authenticated_client.get(f"{API}/appointments/", params={
        "start": "2026-06-02T00:00:00", "end": "2026-06-02T23:59:59",
    })
    assert [a["id"] for a in window.json()] == [middle["id"]]

    for_ana = await authenticated_client.get(f"{API}/appointments/", params={"client_id": ana["id"]})
    assert [a["id"] for a in for_ana.json()] == [middle["id"], later["id"]]

async def test_attendance_outcomes(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    appointment = await _schedule(authenticated_client, client["id"], "2026-06-01T14:30:00")
    url = f"{API}/appointments/{appointment['id']}/attendance"

    attended = await authenticated_client.patch(url, json={"outcome": "attended"})
    assert attended.json()["outcome"] == "attended"

    missed = await authenticated_client.patch(url, json={"outcome": "missed"})
    assert missed.json()["attended"] is False
    assert missed.json()["missed"] is True

    reopened = await authenticated_client.patch(url, json={"outcome": "open"})
    assert reopened.json()["outcome"] == "open"

    invalid = await authenticated_client.patch(url, json={"outcome": "late"})
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_update_flag_clears_the_other(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    appointment = await _schedule(authenticated_client, client["id"], "2026-06-01T14:30:00", missed=True)
    url = f"{API}/appointments/{appointment['id']}"

    response = await authenticated_client.put(url, json={"attended": True, "notes": "Chegou atrasado"})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["attended"] is True and body["missed"] is False
    assert body["notes"] == "Chegou atrasado"
    assert body["scheduled_at"] == appointment["scheduled_at"]

    both = await authenticated_client.put(url, json={"attended": True, "missed": True})
    assert both.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_update_and_delete(authenticated_client: AsyncClient, make_client):
    client = await make_client()
    appointment = await _schedule(authenticated_client, client["id"], "2026-06-01T14:30:00")
    url = f"{API}/appointments/{appointment['id']}"

    moved = await authenticated_client.put(url, json={"scheduled_at": "2026-06-05T10:00:00"})
    assert moved.json()["scheduled_at"].startswith("2026-06-05T10:00:00")

    unknown_client = await authenticated_client.put(url, json={"client_id": "64b000000000000000000000"})
    assert unknown_client.status_code == status.HTTP_404_NOT_FOUND

    assert (await authenticated_client.delete(url)).status_code == status.HTTP_200_OK
    assert (await authenticated_client.get(url)).status_code == status.HTTP_404_NOT_FOUND

@pytest.mark.parametrize("field", ["attended", "missed", "scheduled_at", "client_id"])
async def test_update_rejects_null_for_required_fields(authenticated_client: AsyncClient, make_client, field):
    client = await make_client()
    appointment = await _schedule(authenticated_client, client["id"], "2026-06-01T14:30:00")

    response = await authenticated_client.put(f"{API}/appointments/{appointment['id']}", json={field: None})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert field in response.json()["errors"][0]["message"]

    fetched = await authenticated_client.get(f"{API}/appointments/{appointment['id']}")
    assert fetched.status_code == status.HTTP_200_OK
    assert fetched.json()["outcome"] == "open"
