"""
Service ghi nhận giao dịch kho (nhập / xuất).

Phiếu xuất chỉ được chấp nhận khi số lượng không vượt tồn kho hiện tại,
tính qua sổ kho ngay trước khi ghi. Phiếu nhập luôn được chấp nhận.

Giả định một người ghi tại một thời điểm: bước kiểm tra rồi ghi không atomic
nếu có nhiều phiên cùng xuất một sản phẩm.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from ..core.error_handler import InsufficientStockError
from ..core.validators import optional_text, parse_date, parse_int, require_choice
from ..models.entities import InventoryTransaction
from ..models.enums import TRANSACTION_EXPORT, TRANSACTION_TYPES
from ..repositories import (
    ProductRepository,
    SalesOrderRepository,
    TransactionRepository,
    parse_uuid,
)
from .stock_ledger import current_stock

logger = logging.getLogger(__name__)


def check_export(db: Session, product_id: Any, quantity: int) -> int:
    """Kiểm tra xuất `quantity` có đủ hàng không.

    Returns:
        Tồn kho hiện tại (trước khi xuất)

    Raises:
        NotFoundError: sản phẩm không tồn tại
        InsufficientStockError: số lượng xuất vượt tồn kho
    """
    product = ProductRepository(db).get_or_raise(product_id)
    available = current_stock(db, product.id)
    if quantity > available:
        logger.warning(
            "Từ chối xuất %s x %s: chỉ còn %s", quantity, product.name, available
        )
        raise InsufficientStockError(
            available=available, requested=quantity, product_name=product.name
        )
    return available


def admit_transaction(db: Session, data: dict[str, Any]) -> InventoryTransaction:
    """Kiểm tra rồi ghi thêm 1 giao dịch kho.

    Payload:
    {
      "product_id": "...",
      "type": "import" | "export",
      "quantity": 5,
      "date": "2025-01-01",
      "related_party": "NCC A",   (tùy chọn)
      "notes": "...",             (tùy chọn)
      "related_order_id": "..."   (tùy chọn)
    }
    """
    product = ProductRepository(db).get_or_raise(data.get("product_id"))
    tx_type = require_choice(data.get("type"), TRANSACTION_TYPES, "Loại giao dịch")
    quantity = parse_int(data.get("quantity"), "Số lượng", minimum=1)
    tx_date = parse_date(data.get("date"), default=date.today())

    if tx_type == TRANSACTION_EXPORT:
        check_export(db, product.id, quantity)

    related_order_id = data.get("related_order_id")
    if related_order_id:
        related_order_id = SalesOrderRepository(db).get_or_raise(related_order_id).id
    tx = InventoryTransaction(
        product_id=product.id,
        type=tx_type,
        quantity=quantity,
        transaction_date=tx_date,
        related_party=optional_text(data.get("related_party")),
        notes=optional_text(data.get("notes")),
        related_order_id=related_order_id or None,
    )
    TransactionRepository(db).add(tx)

    logger.info("Đã ghi nhận %s %s x %s", tx_type, quantity, product.name)
    return tx


def list_transactions(
    db: Session,
    type: str | None = None,
    product_id: Any | None = None,
) -> list[InventoryTransaction]:
    if type:
        require_choice(type, TRANSACTION_TYPES, "Loại giao dịch")
    return TransactionRepository(db).list_all(
        type=type,
        product_id=parse_uuid(product_id, "ID sản phẩm") if product_id else None,
    )


def transaction_to_dict(tx: InventoryTransaction) -> dict[str, Any]:
    return {
        "id": str(tx.id),
        "product_id": str(tx.product_id),
        "product_name": tx.product.name if tx.product else None,
        "type": tx.type,
        "quantity": tx.quantity,
        "date": tx.transaction_date.isoformat(),
        "related_party": tx.related_party,
        "notes": tx.notes,
        "related_order_id": str(tx.related_order_id) if tx.related_order_id else None,
    }
