"""
Repository cho từng loại entity.

Mỗi repository bọc một SQLAlchemy `Session` và chỉ cung cấp CRUD đơn giản
(get / list / add / delete). Các service nghiệp vụ nhận repository thay vì
truy vấn trực tiếp, nên có thể chạy với DB SQLite in-memory khi test.
"""

from __future__ import annotations

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from .core.error_handler import NotFoundError, ValidationError
from .models.entities import (
    Product,
    InventoryTransaction,
    IncomeEntry,
    ExpenseEntry,
    SalesOrder,
)

ModelT = TypeVar("ModelT")


def parse_uuid(value: Any, label: str = "ID") -> uuid.UUID:
    """Chuyển string sang UUID, báo lỗi validation nếu sai định dạng."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise ValidationError(f"{label} không hợp lệ: {value}")


class Repository(Generic[ModelT]):
    """CRUD cơ bản cho một model."""

    model: type
    label: str = "Bản ghi"

    def __init__(self, db: Session):
        self.db = db

    def get(self, entity_id: Any) -> ModelT | None:
        return self.db.get(self.model, parse_uuid(entity_id, f"ID {self.label.lower()}"))

    def get_or_raise(self, entity_id: Any) -> ModelT:
        entity = self.get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.label} không tồn tại: {entity_id}")
        return entity

    def list_all(self) -> list[ModelT]:
        return self.db.query(self.model).all()

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class ProductRepository(Repository[Product]):
    model = Product
    label = "Sản phẩm"

    def list_all(self, search: str | None = None) -> list[Product]:
        query = self.db.query(Product)
        if search:
            pattern = f"%{search}%"
            query = query.filter(Product.name.ilike(pattern) | Product.sku.ilike(pattern))
        return query.order_by(Product.name).all()


class TransactionRepository(Repository[InventoryTransaction]):
    model = InventoryTransaction
    label = "Giao dịch kho"

    def for_product(self, product_id: uuid.UUID) -> list[InventoryTransaction]:
        return (
            self.db.query(InventoryTransaction)
            .filter(InventoryTransaction.product_id == product_id)
            .all()
        )

    def list_all(
        self,
        type: str | None = None,
        product_id: uuid.UUID | None = None,
    ) -> list[InventoryTransaction]:
        query = self.db.query(InventoryTransaction)
        if type:
            query = query.filter(InventoryTransaction.type == type)
        if product_id:
            query = query.filter(InventoryTransaction.product_id == product_id)
        return query.order_by(
            InventoryTransaction.transaction_date.desc(),
            InventoryTransaction.created_at.desc(),
        ).all()

    def for_order(self, order_id: uuid.UUID) -> list[InventoryTransaction]:
        return (
            self.db.query(InventoryTransaction)
            .filter(InventoryTransaction.related_order_id == order_id)
            .all()
        )

    def delete_for_product(self, product_id: uuid.UUID) -> int:
        count = (
            self.db.query(InventoryTransaction)
            .filter(InventoryTransaction.product_id == product_id)
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return count


class IncomeRepository(Repository[IncomeEntry]):
    model = IncomeEntry
    label = "Khoản thu nhập"

    def list_all(self) -> list[IncomeEntry]:
        return (
            self.db.query(IncomeEntry)
            .order_by(IncomeEntry.entry_date.desc(), IncomeEntry.created_at.desc())
            .all()
        )

    def for_order(self, order_id: uuid.UUID) -> list[IncomeEntry]:
        return (
            self.db.query(IncomeEntry)
            .filter(IncomeEntry.related_order_id == order_id)
            .all()
        )


class ExpenseRepository(Repository[ExpenseEntry]):
    model = ExpenseEntry
    label = "Khoản chi tiêu"

    def list_all(self) -> list[ExpenseEntry]:
        return (
            self.db.query(ExpenseEntry)
            .order_by(ExpenseEntry.entry_date.desc(), ExpenseEntry.created_at.desc())
            .all()
        )


class SalesOrderRepository(Repository[SalesOrder]):
    model = SalesOrder
    label = "Đơn hàng"

    def list_all(self, status: str | None = None) -> list[SalesOrder]:
        query = self.db.query(SalesOrder)
        if status:
            query = query.filter(SalesOrder.status == status)
        return query.order_by(
            SalesOrder.order_date.desc(), SalesOrder.created_at.desc()
        ).all()

    def count_for_date(self, order_date) -> int:
        return (
            self.db.query(SalesOrder)
            .filter(SalesOrder.order_date == order_date)
            .count()
        )

    def number_exists(self, order_number: str) -> bool:
        return (
            self.db.query(SalesOrder.id)
            .filter(SalesOrder.order_number == order_number)
            .first()
            is not None
        )
