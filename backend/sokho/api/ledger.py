"""
API cho sổ thu chi + các báo cáo tổng hợp.
"""

from __future__ import annotations

from robyn import Request, Response

from ..core.db import get_session
from ..core.error_handler import json_response
from ..core.validators import load_json_body, parse_date, to_number
from ..services import entry_service
from ..services.ledger_aggregator import (
    category_totals,
    dashboard_summary,
    monthly_summary,
    order_profit_summary,
)


def list_income(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        rows = entry_service.list_income_entries(db)
        return json_response([entry_service.entry_to_dict(e) for e in rows])


def create_income(request: Request) -> Response:  # type: ignore[override]
    data = load_json_body(request.body)
    with get_session() as db:
        entry = entry_service.add_income_entry(db, data)
        return json_response(entry_service.entry_to_dict(entry), status_code=201)


def delete_income(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        entry_service.delete_income_entry(db, request.path_params.get("id"))
    return json_response({"deleted": True})


def list_expenses(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        rows = entry_service.list_expense_entries(db)
        return json_response([entry_service.entry_to_dict(e) for e in rows])


def create_expense(request: Request) -> Response:  # type: ignore[override]
    data = load_json_body(request.body)
    with get_session() as db:
        entry = entry_service.add_expense_entry(db, data)
        return json_response(entry_service.entry_to_dict(entry), status_code=201)


def delete_expense(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        entry_service.delete_expense_entry(db, request.path_params.get("id"))
    return json_response({"deleted": True})


def get_category_totals(request: Request) -> Response:  # type: ignore[override]
    """GET /api/reports/category-totals?kind=income|expense"""

    kind = request.query_params.get("kind", "income")
    with get_session() as db:
        totals = category_totals(db, kind)
    return json_response({category: to_number(amount) for category, amount in totals.items()})


def get_monthly_summary(request: Request) -> Response:  # type: ignore[override]
    """GET /api/reports/monthly"""

    with get_session() as db:
        rows = monthly_summary(db)
    return json_response(
        [
            {
                "month_key": row["month_key"],
                "income": to_number(row["income"]),
                "expenses": to_number(row["expenses"]),
                "balance": to_number(row["balance"]),
            }
            for row in rows
        ]
    )


def get_order_profit(request: Request) -> Response:  # type: ignore[override]
    """GET /api/reports/order-profit?start_date=...&end_date=..."""

    start = request.query_params.get("start_date", None)
    end = request.query_params.get("end_date", None)
    with get_session() as db:
        summary = order_profit_summary(
            db,
            start_date=parse_date(start, "Từ ngày") if start else None,
            end_date=parse_date(end, "Đến ngày") if end else None,
        )
    return json_response(
        {
            "completed_orders": summary["completed_orders"],
            "revenue": to_number(summary["revenue"]),
            "total_cost": to_number(summary["total_cost"]),
            "total_profit": to_number(summary["total_profit"]),
        }
    )


def get_dashboard(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        return json_response(dashboard_summary(db))
