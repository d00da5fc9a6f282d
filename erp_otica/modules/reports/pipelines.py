# erp_otica/modules/reports/pipelines.py
"""
Pipelines de agregação dos relatórios.

Só usam estágios e operadores simples ($match, $group, $sort, $limit,
$lookup, $unwind, $cond); a formatação dos rótulos é feita em Python.
"""
from datetime import datetime
from typing import Any, Dict, List

Pipeline = List[Dict[str, Any]]

COMPLETED = {"status": "completed"}

def by_year_month(field: str) -> Dict[str, Any]:
    return {"year": {"$year": f"${field}"}, "month": {"$month": f"${field}"}}

def monthly_revenue(limit: int = 12) -> Pipeline:
    # Ordena do mais recente para o mais antigo para o $limit pegar os últimos meses
    return [
        {"$match": COMPLETED},
        {"$group": {"_id": by_year_month("sale_date"), "revenue": {"$sum": "$total_amount"}}},
        {"$sort": {"_id.year": -1, "_id.month": -1}},
        {"$limit": limit},
    ]

def sales_by_payment_method() -> Pipeline:
    return [
        {"$match": COMPLETED},
        {"$group": {"_id": "$payment.method", "value": {"$sum": 1}}},
        {"$sort": {"value": -1, "_id": 1}},
    ]

def top_clients(clients_collection: str, limit: int = 5) -> Pipeline:
    return [
        {"$match": COMPLETED},
        {"$group": {"_id": "$client_id", "total_spent": {"$sum": "$total_amount"}}},
        {"$sort": {"total_spent": -1}},
        {"$lookup": {"from": clients_collection, "localField": "_id", "foreignField": "_id", "as": "client"}},
        {"$unwind": "$client"}, # cliente excluído: some do ranking
        {"$limit": limit},
    ]

def appointment_efficiency() -> Pipeline:
    return [
        {"$project": {"outcome": {"$cond": [
            {"$eq": ["$attended", True]}, "attended",
            {"$cond": [{"$eq": ["$missed", True]}, "missed", "open"]},
        ]}}},
        {"$group": {"_id": "$outcome", "value": {"$sum": 1}}},
    ]

def future_cash_flow(today: datetime, limit: int = 12) -> Pipeline:
    return [
        {"$match": {"status": "open", "due_date": {"$gte": today}}},
        {"$group": {"_id": by_year_month("due_date"), "amount_due": {"$sum": "$installment_value"}}},
        {"$sort": {"_id.year": 1, "_id.month": 1}},
        {"$limit": limit},
    ]

def yearly_comparison(year: int) -> Pipeline:
    return [
        {"$match": {
            **COMPLETED,
            "sale_date": {"$gte": datetime(year - 1, 1, 1), "$lt": datetime(year + 1, 1, 1)},
        }},
        {"$group": {"_id": by_year_month("sale_date"), "total": {"$sum": "$total_amount"}}},
    ]
