"""
Service ghi nhận khoản thu nhập / chi tiêu.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from ..core.validators import (
    optional_text,
    parse_date,
    parse_positive,
    require_choice,
    to_number,
)
from ..models.entities import ExpenseEntry, IncomeEntry
from ..models.enums import EXPENSE_CATEGORIES, INCOME_CATEGORIES
from ..repositories import ExpenseRepository, IncomeRepository, SalesOrderRepository

logger = logging.getLogger(__name__)


def _related_order(db: Session, data: dict[str, Any]):
    value = data.get("related_order_id")
    return SalesOrderRepository(db).get_or_raise(value).id if value else None


def add_income_entry(db: Session, data: dict[str, Any]) -> IncomeEntry:
    entry = IncomeEntry(
        entry_date=parse_date(data.get("date")),
        amount=parse_positive(data.get("amount"), "Số tiền"),
        category=require_choice(data.get("category"), INCOME_CATEGORIES, "Danh mục thu nhập"),
        description=optional_text(data.get("description")),
        related_order_id=_related_order(db, data),
    )
    IncomeRepository(db).add(entry)
    logger.info("Đã thêm khoản thu %s (%s)", entry.amount, entry.category)
    return entry


def add_expense_entry(db: Session, data: dict[str, Any]) -> ExpenseEntry:
    entry = ExpenseEntry(
        entry_date=parse_date(data.get("date")),
        amount=parse_positive(data.get("amount"), "Số tiền"),
        category=require_choice(data.get("category"), EXPENSE_CATEGORIES, "Danh mục chi tiêu"),
        description=optional_text(data.get("description")),
        receipt_image_url=optional_text(data.get("receipt_image_url")),
        related_order_id=_related_order(db, data),
    )
    ExpenseRepository(db).add(entry)
    logger.info("Đã thêm khoản chi %s (%s)", entry.amount, entry.category)
    return entry


def delete_income_entry(db: Session, entry_id: Any) -> None:
    repo = IncomeRepository(db)
    repo.delete(repo.get_or_raise(entry_id))
    logger.info("Đã xóa khoản thu %s", entry_id)


def delete_expense_entry(db: Session, entry_id: Any) -> None:
    repo = ExpenseRepository(db)
    repo.delete(repo.get_or_raise(entry_id))
    logger.info("Đã xóa khoản chi %s", entry_id)


def list_income_entries(db: Session) -> list[IncomeEntry]:
    return IncomeRepository(db).list_all()


def list_expense_entries(db: Session) -> list[ExpenseEntry]:
    return ExpenseRepository(db).list_all()


def entry_to_dict(entry: IncomeEntry | ExpenseEntry) -> dict[str, Any]:
    data = {
        "id": str(entry.id),
        "date": entry.entry_date.isoformat(),
        "amount": to_number(entry.amount),
        "category": entry.category,
        "description": entry.description,
        "related_order_id": str(entry.related_order_id) if entry.related_order_id else None,
    }
    if isinstance(entry, ExpenseEntry):
        data["receipt_image_url"] = entry.receipt_image_url
    return data
