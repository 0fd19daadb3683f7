"""
Services cho báo cáo thu chi + lợi nhuận đơn hàng.

Mọi số liệu tính lại theo yêu cầu từ dữ liệu hiện tại, không cache.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Protocol

from sqlalchemy.orm import Session

from ..core.error_handler import ValidationError
from ..core.validators import to_number
from ..models.entities import ExpenseEntry, IncomeEntry, SalesOrder
from ..models.enums import ORDER_STATUS_COMPLETED, STOCK_LOW, STOCK_OUT
from ..repositories import ProductRepository
from .stock_ledger import current_stocks, stock_status

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class LedgerEntry(Protocol):
    entry_date: date
    amount: Decimal
    category: str


def sum_by_category(entries: Iterable[LedgerEntry]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        totals[entry.category] += entry.amount
    return dict(totals)


def month_key(value: date) -> str:
    return value.strftime("%Y-%m")


def summarize_by_month(
    income: Iterable[LedgerEntry],
    expenses: Iterable[LedgerEntry],
) -> list[dict[str, Any]]:
    """Gom thu / chi theo tháng (YYYY-MM), sắp xếp tăng dần."""

    buckets: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {"income": ZERO, "expenses": ZERO}
    )
    for entry in income:
        buckets[month_key(entry.entry_date)]["income"] += entry.amount
    for entry in expenses:
        buckets[month_key(entry.entry_date)]["expenses"] += entry.amount

    return [
        {
            "month_key": key,
            "income": values["income"],
            "expenses": values["expenses"],
            "balance": values["income"] - values["expenses"],
        }
        for key, values in sorted(buckets.items())
    ]


def category_totals(db: Session, kind: str) -> dict[str, Decimal]:
    """Tổng tiền theo danh mục, `kind` là "income" hoặc "expense"."""

    if kind == "income":
        return sum_by_category(db.query(IncomeEntry).all())
    if kind == "expense":
        return sum_by_category(db.query(ExpenseEntry).all())
    raise ValidationError(f"Loại báo cáo không hợp lệ: {kind}")


def monthly_summary(db: Session) -> list[dict[str, Any]]:
    return summarize_by_month(db.query(IncomeEntry).all(), db.query(ExpenseEntry).all())


def total_income(db: Session) -> Decimal:
    return sum((e.amount for e in db.query(IncomeEntry).all()), ZERO)


def total_expenses(db: Session) -> Decimal:
    return sum((e.amount for e in db.query(ExpenseEntry).all()), ZERO)


def order_profit_summary(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Any]:
    """Doanh thu / giá vốn / lãi của các đơn đã hoàn thành trong khoảng ngày."""

    query = db.query(SalesOrder).filter(SalesOrder.status == ORDER_STATUS_COMPLETED)
    if start_date:
        query = query.filter(SalesOrder.order_date >= start_date)
    if end_date:
        query = query.filter(SalesOrder.order_date <= end_date)
    orders = query.all()

    revenue = sum(
        (o.final_amount if o.final_amount is not None else o.total_amount for o in orders),
        ZERO,
    )
    cost = sum((o.total_cost for o in orders), ZERO)
    return {
        "completed_orders": len(orders),
        "revenue": revenue,
        "total_cost": cost,
        "total_profit": revenue - cost,
    }


def dashboard_summary(db: Session) -> dict[str, Any]:
    """Số liệu tổng quan cho trang dashboard."""

    income = total_income(db)
    expenses = total_expenses(db)
    stocks = current_stocks(db)
    products = ProductRepository(db).list_all()
    statuses = [stock_status(stocks[p.id], p.min_stock_level) for p in products]
    profit = order_profit_summary(db)

    return {
        "total_income": to_number(income),
        "total_expenses": to_number(expenses),
        "net_balance": to_number(income - expenses),
        "product_count": len(products),
        "low_stock_count": statuses.count(STOCK_LOW),
        "out_of_stock_count": statuses.count(STOCK_OUT),
        "orders": {
            "completed_orders": profit["completed_orders"],
            "revenue": to_number(profit["revenue"]),
            "total_cost": to_number(profit["total_cost"]),
            "total_profit": to_number(profit["total_profit"]),
        },
    }
