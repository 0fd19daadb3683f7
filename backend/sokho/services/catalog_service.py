"""
Service quản lý danh mục sản phẩm.

Bao gồm:
- Thêm / sửa / xóa sản phẩm
- Trả về sản phẩm kèm tồn kho hiện tại (luôn tính lại qua sổ kho)

Chính sách xóa: xóa sản phẩm sẽ xóa luôn toàn bộ giao dịch kho của nó.
Dòng đơn hàng cũ vẫn giữ tên + giá đã chụp, chỉ mất liên kết tới sản phẩm.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from ..core.validators import (
    optional_text,
    parse_int,
    parse_optional_int,
    parse_optional_non_negative,
    require_choice,
    require_text,
)
from ..models.entities import Product
from ..models.enums import PRODUCT_UNITS
from ..repositories import ProductRepository, TransactionRepository
from .stock_ledger import current_stock, current_stocks, stock_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductView:
    """Sản phẩm + tồn kho dẫn xuất (chỉ đọc)."""

    id: uuid.UUID
    name: str
    sku: str | None
    unit: str
    cost_price: Decimal | None
    selling_price: Decimal | None
    min_stock_level: int | None
    initial_stock: int
    image_url: str | None
    current_stock: int

    @property
    def stock_status(self) -> str:
        return stock_status(self.current_stock, self.min_stock_level)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["id"] = str(self.id)
        data["stock_status"] = self.stock_status
        return data


def _to_view(product: Product, stock: int) -> ProductView:
    return ProductView(
        id=product.id,
        name=product.name,
        sku=product.sku,
        unit=product.unit,
        cost_price=product.cost_price,
        selling_price=product.selling_price,
        min_stock_level=product.min_stock_level,
        initial_stock=product.initial_stock,
        image_url=product.image_url,
        current_stock=stock,
    )


def _apply_fields(product: Product, data: dict[str, Any], partial: bool) -> None:
    """Gán các trường hợp lệ từ payload; bỏ qua `current_stock` nếu có."""

    def given(key: str) -> bool:
        return not partial or key in data

    if given("name"):
        product.name = require_text(data.get("name"), "Tên sản phẩm")
    if given("sku"):
        product.sku = optional_text(data.get("sku"))
    if given("unit"):
        product.unit = require_choice(data.get("unit"), PRODUCT_UNITS, "Đơn vị tính")
    if given("cost_price"):
        product.cost_price = parse_optional_non_negative(data.get("cost_price"), "Giá vốn")
    if given("selling_price"):
        product.selling_price = parse_optional_non_negative(data.get("selling_price"), "Giá bán")
    if given("min_stock_level"):
        product.min_stock_level = parse_optional_int(
            data.get("min_stock_level"), "Tồn kho tối thiểu"
        )
    if given("initial_stock"):
        product.initial_stock = parse_int(
            data.get("initial_stock", 0), "Tồn kho ban đầu", minimum=0
        )
    if given("image_url"):
        product.image_url = optional_text(data.get("image_url"))


def add_product(db: Session, data: dict[str, Any]) -> ProductView:
    """Tạo sản phẩm mới; tồn kho hiện tại = tồn kho ban đầu."""

    product = Product()
    _apply_fields(product, data, partial=False)
    ProductRepository(db).add(product)

    logger.info("Đã thêm sản phẩm %s (%s), tồn đầu %s", product.name, product.id, product.initial_stock)
    return _to_view(product, product.initial_stock)


def update_product(db: Session, product_id: Any, data: dict[str, Any]) -> ProductView:
    """Cập nhật sản phẩm rồi tính lại tồn kho qua sổ kho."""

    repo = ProductRepository(db)
    product = repo.get_or_raise(product_id)
    _apply_fields(product, data, partial=True)
    db.flush()

    logger.info("Đã cập nhật sản phẩm %s", product.id)
    return _to_view(product, current_stock(db, product.id))


def delete_product(db: Session, product_id: Any) -> int:
    """Xóa sản phẩm cùng các giao dịch kho liên quan.

    Returns:
        Số giao dịch kho đã bị xóa theo
    """
    repo = ProductRepository(db)
    product = repo.get_or_raise(product_id)

    removed = TransactionRepository(db).delete_for_product(product.id)
    repo.delete(product)

    logger.info("Đã xóa sản phẩm %s và %s giao dịch kho liên quan", product_id, removed)
    return removed


def get_product(db: Session, product_id: Any) -> ProductView:
    product = ProductRepository(db).get_or_raise(product_id)
    return _to_view(product, current_stock(db, product.id))


def list_products(db: Session, search: str | None = None) -> list[ProductView]:
    stocks = current_stocks(db)
    return [
        _to_view(product, stocks[product.id])
        for product in ProductRepository(db).list_all(search=search)
    ]
