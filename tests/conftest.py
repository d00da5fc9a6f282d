# tests/conftest.py
import os

# Settings são lidas no import da aplicação: precisam existir antes dele
os.environ.update({
    "PROJECT_NAME": "ERP Ótica Test",
    "API_V1_STR": "/api/v1",
    "LOG_LEVEL": "DEBUG",
    "MONGODB_URI": "mongodb://localhost:27017/erp_otica_test",
    "REDIS_URL": "redis://localhost:6379/15",
    "SECRET_KEY": "test-secret-key",
    "ALGORITHM": "HS256",
    "RATE_LIMIT_STORAGE_URI": "memory://",
})

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from erp_otica.core.database import get_database, get_redis_client
from erp_otica.core.rate_limit import limiter
from erp_otica.core.security import get_current_active_user
from erp_otica.main import app
from erp_otica.modules.people.models import UserInDB

API = "/api/v1"

# CPFs válidos para os testes
CPF_A = "529.982.247-25"
CPF_B = "111.444.777-35"
CPF_C = "390.533.447-05"

@pytest.fixture
def db_client():
    """Banco Mongo em memória, novo a cada teste."""
    client = AsyncMongoMockClient()
    return client[f"test_db_{os.urandom(4).hex()}"]

@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Contadores do slowapi ficam em memória entre testes."""
    limiter.reset()
    yield

@pytest.fixture
def admin_user() -> UserInDB:
    return UserInDB(
        _id=ObjectId(),
        email="admin@otica.com.br",
        full_name="Admin da Ótica",
        hashed_password="not-used",
        roles=["admin"],
    )

@pytest.fixture
def seller_user() -> UserInDB:
    return UserInDB(
        _id=ObjectId(),
        email="vendedor@otica.com.br",
        full_name="Vendedor",
        hashed_password="not-used",
        roles=["seller"],
    )

def _override_common(db):
    async def _db():
        return db
    async def _no_redis():
        return None
    app.dependency_overrides[get_database] = _db
    app.dependency_overrides[get_redis_client] = _no_redis

async def _client() -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

@pytest_asyncio.fixture
async def test_client(db_client) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP sem usuário logado."""
    _override_common(db_client)
    async for client in _client():
        yield client
    app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def authenticated_client(db_client, admin_user) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP autenticado como admin."""
    _override_common(db_client)
    app.dependency_overrides[get_current_active_user] = lambda: admin_user
    async for client in _client():
        yield client
    app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def seller_client(db_client, seller_user) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP autenticado como vendedor (sem papel de admin)."""
    _override_common(db_client)
    app.dependency_overrides[get_current_active_user] = lambda: seller_user
    async for client in _client():
        yield client
    app.dependency_overrides.clear()

# --- Fábricas de dados via API ---

@pytest_asyncio.fixture
async def make_client(authenticated_client):
    async def _make(full_name="Maria da Silva", cpf=CPF_A, **extra):
        payload = {"full_name": full_name, "cpf": cpf, **extra}
        response = await authenticated_client.post(f"{API}/clients/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make

@pytest_asyncio.fixture
async def make_product(authenticated_client):
    async def _make(name="Armação Ray-Ban", sale_price=300.0, stock_quantity=10, **extra):
        payload = {"name": name, "sale_price": sale_price, "stock_quantity": stock_quantity, **extra}
        response = await authenticated_client.post(f"{API}/products/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
