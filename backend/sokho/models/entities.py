"""
Định nghĩa các entity chính cho Sổ Kho.

Lưu ý:
- Dùng UUID làm khóa chính.
- Tồn kho hiện tại KHÔNG được lưu: luôn tính lại từ `initial_stock` + lịch sử
  giao dịch kho (xem `services/stock_ledger.py`).
- Dòng đơn hàng chụp lại tên, đơn giá, giá vốn tại thời điểm bán; không tính
  lại từ sản phẩm hiện tại.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String,
    Text,
    Date,
    DateTime,
    Numeric,
    Integer,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, created_at_column, money_column, uuid_pk
from .enums import ORDER_STATUS_NEW


class Product(Base):
    """Sản phẩm trong danh mục."""

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), index=True)
    sku: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    unit: Mapped[str] = mapped_column(String(20))
    cost_price: Mapped[Decimal | None] = money_column(nullable=True)
    selling_price: Mapped[Decimal | None] = money_column(nullable=True)
    min_stock_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    initial_stock: Mapped[int] = mapped_column(Integer, default=0)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint("initial_stock >= 0", name="initial_stock_non_negative"),
    )

    # Giao dịch được xóa tường minh trước khi xóa sản phẩm (catalog_service)
    transactions: Mapped[list["InventoryTransaction"]] = relationship(
        back_populates="product", passive_deletes="all"
    )


class SalesOrder(Base):
    """Đơn hàng bán."""

    id: Mapped[uuid.UUID] = uuid_pk()
    order_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    order_date: Mapped[date] = mapped_column(Date, index=True)
    status: Mapped[str] = mapped_column(String(30), default=ORDER_STATUS_NEW)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_amount: Mapped[Decimal] = money_column(default=0)
    total_cost: Mapped[Decimal] = money_column(default=0)
    total_profit: Mapped[Decimal] = money_column(default=0)

    # Chỉ có giá trị sau khi thanh toán
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0)
    direct_discount_amount: Mapped[Decimal] = money_column(default=0)
    other_income_amount: Mapped[Decimal] = money_column(default=0)
    final_amount: Mapped[Decimal | None] = money_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cash_received: Mapped[Decimal | None] = money_column(nullable=True)
    change_given: Mapped[Decimal | None] = money_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = created_at_column()

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )


class OrderItem(Base):
    """Dòng hàng của đơn, chụp lại tên + giá lúc bán."""

    id: Mapped[uuid.UUID] = uuid_pk()
    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("salesorder.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    # Null khi sản phẩm đã bị xóa khỏi danh mục; tên + giá vẫn giữ nguyên
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("product.id", ondelete="SET NULL"), nullable=True, index=True
    )
    product_name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = money_column()
    cost_price: Mapped[Decimal] = money_column(default=0)
    total_price: Mapped[Decimal] = money_column()

    order: Mapped[SalesOrder] = relationship(back_populates="items")


class InventoryTransaction(Base):
    """Giao dịch kho: phiếu nhập (import) / xuất (export).

    Chỉ thêm mới, không có luồng cập nhật.
    """

    id: Mapped[uuid.UUID] = uuid_pk()
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product.id"), index=True
    )
    type: Mapped[str] = mapped_column(String(10))  # import, export
    quantity: Mapped[int] = mapped_column(Integer)
    transaction_date: Mapped[date] = mapped_column(Date, index=True)
    related_party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_order_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("salesorder.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    product: Mapped[Product] = relationship(back_populates="transactions")


class IncomeEntry(Base):
    """Khoản thu nhập."""

    id: Mapped[uuid.UUID] = uuid_pk()
    entry_date: Mapped[date] = mapped_column(Date, index=True)
    amount: Mapped[Decimal] = money_column()
    category: Mapped[str] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_order_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("salesorder.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = created_at_column()


class ExpenseEntry(Base):
    """Khoản chi tiêu."""

    id: Mapped[uuid.UUID] = uuid_pk()
    entry_date: Mapped[date] = mapped_column(Date, index=True)
    amount: Mapped[Decimal] = money_column()
    category: Mapped[str] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    receipt_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    related_order_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("salesorder.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = created_at_column()
