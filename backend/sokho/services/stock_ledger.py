"""
Sổ kho: tính tồn kho hiện tại từ tồn đầu kỳ + lịch sử nhập/xuất.

Tồn kho KHÔNG bao giờ được lưu thành cột riêng. Mỗi lần đọc đều replay toàn bộ
giao dịch của sản phẩm, nên sửa tồn đầu kỳ hay thêm giao dịch đều phản ánh ngay.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Any, Iterable, Protocol

from sqlalchemy.orm import Session

from ..models.entities import InventoryTransaction
from ..models.enums import (
    TRANSACTION_IMPORT,
    TRANSACTION_EXPORT,
    STOCK_IN_STOCK,
    STOCK_LOW,
    STOCK_OUT,
)
from ..repositories import ProductRepository, TransactionRepository


class StockMovement(Protocol):
    type: str
    quantity: int


def replay_stock(initial_stock: int, transactions: Iterable[StockMovement]) -> int:
    """Cộng nhập, trừ xuất bắt đầu từ tồn đầu kỳ. Không phụ thuộc thứ tự."""

    stock = initial_stock or 0
    for tx in transactions:
        if tx.type == TRANSACTION_IMPORT:
            stock += tx.quantity
        elif tx.type == TRANSACTION_EXPORT:
            stock -= tx.quantity
    return stock


def current_stock(db: Session, product_id: Any) -> int:
    """Tồn kho hiện tại của 1 sản phẩm.

    Raises:
        NotFoundError: nếu sản phẩm không tồn tại
    """
    product = ProductRepository(db).get_or_raise(product_id)
    transactions = TransactionRepository(db).for_product(product.id)
    return replay_stock(product.initial_stock, transactions)


def current_stocks(db: Session) -> dict[uuid.UUID, int]:
    """Tồn kho của tất cả sản phẩm, replay trong một lượt quét giao dịch."""

    by_product: dict[uuid.UUID, list[InventoryTransaction]] = defaultdict(list)
    for tx in db.query(InventoryTransaction).all():
        by_product[tx.product_id].append(tx)

    return {
        product.id: replay_stock(product.initial_stock, by_product.get(product.id, []))
        for product in ProductRepository(db).list_all()
    }


def stock_status(stock: int, min_stock_level: int | None) -> str:
    """Phân loại: hết hàng / sắp hết / còn hàng."""

    if stock <= 0:
        return STOCK_OUT
    if min_stock_level is not None and stock < min_stock_level:
        return STOCK_LOW
    return STOCK_IN_STOCK


def stock_levels_report(db: Session) -> dict[str, Any]:
    """Báo cáo tồn kho dạng kanban: còn hàng / sắp hết / hết hàng."""

    stocks = current_stocks(db)
    buckets: dict[str, list[dict[str, Any]]] = {
        STOCK_IN_STOCK: [],
        STOCK_LOW: [],
        STOCK_OUT: [],
    }
    for product in ProductRepository(db).list_all():
        stock = stocks[product.id]
        buckets[stock_status(stock, product.min_stock_level)].append(
            {
                "id": str(product.id),
                "name": product.name,
                "sku": product.sku,
                "unit": product.unit,
                "current_stock": stock,
                "min_stock_level": product.min_stock_level,
            }
        )

    return {
        "counts": {status: len(rows) for status, rows in buckets.items()},
        "products": buckets,
    }
