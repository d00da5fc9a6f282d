# tests/core/test_query_helpers.py
from datetime import datetime

from erp_otica.core.repository import date_range_query

def test_date_range_query():
    start, end = datetime(2025, 1, 1), datetime(2025, 1, 31)
    assert date_range_query("sale_date") == {}
    assert date_range_query("sale_date", start, end) == {"sale_date": {"$gte": start, "$lte": end}}
    assert date_range_query("sale_date", end=end) == {"sale_date": {"$lte": end}}
