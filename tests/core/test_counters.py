# tests/core/test_counters.py
import pytest

from erp_otica.core.counters import CounterService

pytestmark = pytest.mark.asyncio

async def test_references_are_sequential_per_prefix_and_year(db_client):
    counters = CounterService(db_client)
    assert await counters.generate_reference("VND", year=2026) == "VND-2026-00001"
    assert await counters.generate_reference("VND", year=2026) == "VND-2026-00002"
    assert await counters.generate_reference("OS", year=2026) == "OS-2026-00001"
    # Ano novo reinicia a sequência
    assert await counters.generate_reference("VND", year=2027) == "VND-2027-00001"

async def test_invalid_prefix_is_rejected(db_client):
    with pytest.raises(ValueError):
        await CounterService(db_client).generate_reference("VND-X")
