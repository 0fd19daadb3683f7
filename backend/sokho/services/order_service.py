"""
Service xử lý đơn hàng bán.

Vòng đời:
- Tạo đơn nháp (trạng thái "Mới"), có thể sửa khi còn "Mới"
- Chốt đơn (thanh toán): tính tiền, xuất kho từng dòng, ghi 1 khoản thu "Bán hàng",
  chuyển sang "Hoàn thành"
- Hủy đơn "Mới": chuyển sang "Đã hủy", không ảnh hưởng tồn kho

Chốt đơn là tất cả hoặc không gì cả: mọi dòng được kiểm tra tồn kho trước khi
ghi bất kỳ bản ghi nào, và toàn bộ chạy trong cùng một session (rollback khi lỗi).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from ..core.error_handler import EmptyOrderError, NotFoundError, ValidationError
from ..core.validators import (
    optional_text,
    parse_date,
    parse_int,
    parse_non_negative,
    require_choice,
    to_number,
)
from ..models.entities import IncomeEntry, OrderItem, SalesOrder
from ..models.enums import (
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_NEW,
    ORDER_STATUSES,
    PAYMENT_METHOD_CASH,
    PAYMENT_METHOD_LABELS,
    PAYMENT_METHODS,
    SALES_INCOME_CATEGORY,
    TRANSACTION_EXPORT,
)
from ..repositories import IncomeRepository, ProductRepository, SalesOrderRepository
from .sales_calculator import (
    ZERO,
    SettlementResult,
    amount_due,
    change_due,
    compute_settlement,
    order_subtotal,
    total_cost,
    total_profit,
    valid_lines,
    validate_payment_inputs,
)
from .transaction_service import admit_transaction, check_export

logger = logging.getLogger(__name__)


def generate_order_number(db: Session, order_date: date) -> str:
    """Sinh mã đơn DHyyyyMMdd-xxx, tăng dần trong ngày."""

    repo = SalesOrderRepository(db)
    seq = repo.count_for_date(order_date) + 1
    while True:
        code = f"DH{order_date.strftime('%Y%m%d')}-{seq:03d}"
        if not repo.number_exists(code):
            return code
        seq += 1


def _build_items(db: Session, raw_items: Any) -> list[OrderItem]:
    """Dựng các dòng đơn từ payload, chụp lại tên + giá vốn của sản phẩm."""

    if not isinstance(raw_items, list) or not raw_items:
        raise EmptyOrderError()

    products = ProductRepository(db)
    items: list[OrderItem] = []
    for position, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError("Dòng đơn hàng không hợp lệ")
        product = products.get_or_raise(raw.get("product_id"))
        quantity = parse_int(raw.get("quantity"), "Số lượng", minimum=1)

        default_price = product.selling_price if product.selling_price is not None else ZERO
        unit_price = parse_non_negative(raw.get("unit_price"), "Đơn giá", default=default_price)
        cost_price = product.cost_price if product.cost_price is not None else ZERO

        items.append(
            OrderItem(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=unit_price,
                cost_price=cost_price,
                total_price=Decimal(quantity) * unit_price,
            )
        )
    return items


def _refresh_draft_totals(order: SalesOrder) -> None:
    order.total_amount = order_subtotal(order.items)
    order.total_cost = total_cost(order.items)
    order.total_profit = total_profit(order.total_amount, order.total_cost)


def _require_new(order: SalesOrder, action: str) -> None:
    if order.status != ORDER_STATUS_NEW:
        raise ValidationError(
            f"Không thể {action} đơn {order.order_number} ở trạng thái \"{order.status}\""
        )


def create_order(db: Session, data: dict[str, Any]) -> SalesOrder:
    """Tạo đơn hàng nháp (trạng thái "Mới").

    Payload gợi ý:
    {
      "customer_name": "Chị Lan",
      "date": "2025-01-01",
      "notes": "...",
      "items": [
        {"product_id": "...", "quantity": 2, "unit_price": 50000},
        ...
      ]
    }
    """
    order_date = parse_date(data.get("date"), "Ngày tạo đơn", default=date.today())
    items = _build_items(db, data.get("items"))

    order = SalesOrder(
        order_number=generate_order_number(db, order_date),
        customer_name=optional_text(data.get("customer_name")),
        order_date=order_date,
        status=ORDER_STATUS_NEW,
        notes=optional_text(data.get("notes")),
        items=items,
    )
    _refresh_draft_totals(order)
    SalesOrderRepository(db).add(order)

    logger.info("Đã tạo đơn %s (%s dòng)", order.order_number, len(items))
    return order


def update_order(db: Session, order_id: Any, data: dict[str, Any]) -> SalesOrder:
    """Sửa đơn còn ở trạng thái "Mới" (khách hàng, ngày, ghi chú, dòng hàng)."""

    order = SalesOrderRepository(db).get_or_raise(order_id)
    _require_new(order, "sửa")

    if "customer_name" in data:
        order.customer_name = optional_text(data.get("customer_name"))
    if "date" in data:
        order.order_date = parse_date(data.get("date"), "Ngày tạo đơn")
    if "notes" in data:
        order.notes = optional_text(data.get("notes"))
    if "items" in data:
        order.items = _build_items(db, data.get("items"))
    _refresh_draft_totals(order)
    db.flush()

    logger.info("Đã cập nhật đơn %s", order.order_number)
    return order


def cancel_order(db: Session, order_id: Any) -> SalesOrder:
    """Hủy đơn "Mới". Đơn chưa chốt chưa xuất kho nên không cần hoàn kho."""

    order = SalesOrderRepository(db).get_or_raise(order_id)
    _require_new(order, "hủy")
    order.status = ORDER_STATUS_CANCELLED
    db.flush()

    logger.info("Đã hủy đơn %s", order.order_number)
    return order


def parse_payment(data: dict[str, Any]) -> dict[str, Any]:
    """Chuẩn hóa payload thanh toán thành tham số cho `compute_settlement`."""

    payment_method = data.get("payment_method") or PAYMENT_METHOD_CASH
    require_choice(payment_method, PAYMENT_METHODS, "Phương thức thanh toán")
    cash = data.get("cash_received")
    return {
        "discount_pct": parse_non_negative(data.get("discount_percentage"), "Giảm giá", default=ZERO),
        "direct_discount": parse_non_negative(
            data.get("direct_discount_amount"), "Giảm trực tiếp", default=ZERO
        ),
        "other_income": parse_non_negative(data.get("other_income_amount"), "Thu khác", default=ZERO),
        "payment_method": payment_method,
        "cash_received": (
            parse_non_negative(cash, "Tiền khách trả") if cash not in (None, "") else None
        ),
    }


def _prevalidate_stock(db: Session, items: list[OrderItem]) -> None:
    """Kiểm tra đủ hàng cho TẤT CẢ dòng trước khi ghi gì; gộp dòng trùng sản phẩm."""

    required: dict[Any, int] = defaultdict(int)
    for item in items:
        if item.product_id is None:
            raise NotFoundError(f"Sản phẩm \"{item.product_name}\" đã bị xóa khỏi danh mục")
        required[item.product_id] += item.quantity

    for product_id, quantity in required.items():
        check_export(db, product_id, quantity)


def settle_order(db: Session, order_id: Any, payment: dict[str, Any]) -> SalesOrder:
    """Chốt đơn: tính tiền, xuất kho, ghi thu nhập, chuyển "Hoàn thành".

    Raises:
        NotFoundError, ValidationError, EmptyOrderError, InvalidAmountError,
        UnderPaymentError, InsufficientStockError. Khi raise, chưa có gì được ghi.
    """
    order = SalesOrderRepository(db).get_or_raise(order_id)
    _require_new(order, "thanh toán")

    params = parse_payment(payment)
    result: SettlementResult = compute_settlement(order.items, **params)
    lines = valid_lines(order.items)
    _prevalidate_stock(db, lines)

    order.total_amount = result.subtotal
    order.discount_percentage = result.discount_percentage
    order.direct_discount_amount = result.direct_discount_amount
    order.other_income_amount = result.other_income_amount
    order.final_amount = result.final_amount
    order.total_cost = result.total_cost
    order.total_profit = result.total_profit
    order.payment_method = result.payment_method
    order.cash_received = result.cash_received
    order.change_given = result.change_given
    order.status = ORDER_STATUS_COMPLETED
    order.completed_at = datetime.now(timezone.utc)
    db.flush()

    for item in lines:
        admit_transaction(
            db,
            {
                "product_id": item.product_id,
                "type": TRANSACTION_EXPORT,
                "quantity": item.quantity,
                "date": order.order_date,
                "related_party": order.customer_name,
                "notes": f"Xuất kho theo đơn {order.order_number}",
                "related_order_id": order.id,
            },
        )

    # Khoản thu phải dương; đơn 0đ (tặng hàng) không sinh khoản thu
    if result.final_amount > 0:
        IncomeRepository(db).add(
            IncomeEntry(
                entry_date=order.order_date,
                amount=result.final_amount,
                category=SALES_INCOME_CATEGORY,
                description=f"Thu tiền đơn hàng {order.order_number}",
                related_order_id=order.id,
            )
        )

    logger.info(
        "Đã chốt đơn %s: %s đ (%s)",
        order.order_number,
        result.final_amount,
        PAYMENT_METHOD_LABELS[result.payment_method],
    )
    return order


def quote_order(db: Session, data: dict[str, Any]) -> dict[str, Any]:
    """Báo giá / xem trước số tiền cần trả, không ghi gì vào DB.

    Chưa nhập tiền khách trả thì chưa tính tiền thối.
    """
    items = _build_items(db, data.get("items"))
    params = parse_payment(data)
    lines = valid_lines(items)
    validate_payment_inputs(
        params["discount_pct"],
        params["other_income"],
        params["direct_discount"],
        params["cash_received"],
    )

    subtotal = order_subtotal(lines)
    due = amount_due(subtotal, params["discount_pct"], params["other_income"], params["direct_discount"])
    cost = total_cost(lines)
    cash = params["cash_received"]
    change = None
    if params["payment_method"] == PAYMENT_METHOD_CASH and cash is not None:
        change = change_due(cash, due)

    return {
        "subtotal": to_number(subtotal),
        "final_amount": to_number(due),
        "total_cost": to_number(cost),
        "total_profit": to_number(total_profit(due, cost)),
        "payment_method": params["payment_method"],
        "cash_received": to_number(cash),
        "change_given": to_number(change),
        "under_paid": bool(
            params["payment_method"] == PAYMENT_METHOD_CASH and cash is not None and cash < due
        ),
    }


def get_order(db: Session, order_id: Any) -> SalesOrder:
    return SalesOrderRepository(db).get_or_raise(order_id)


def list_orders(db: Session, status: str | None = None) -> list[SalesOrder]:
    if status:
        require_choice(status, ORDER_STATUSES, "Trạng thái đơn hàng")
    return SalesOrderRepository(db).list_all(status=status)


def order_to_dict(order: SalesOrder) -> dict[str, Any]:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "date": order.order_date.isoformat(),
        "status": order.status,
        "notes": order.notes,
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id) if item.product_id else None,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": to_number(item.unit_price),
                "cost_price": to_number(item.cost_price),
                "total_price": to_number(item.total_price),
            }
            for item in order.items
        ],
        "total_amount": to_number(order.total_amount),
        "discount_percentage": to_number(order.discount_percentage),
        "direct_discount_amount": to_number(order.direct_discount_amount),
        "other_income_amount": to_number(order.other_income_amount),
        "final_amount": to_number(order.final_amount),
        "total_cost": to_number(order.total_cost),
        "total_profit": to_number(order.total_profit),
        "payment_method": order.payment_method,
        "cash_received": to_number(order.cash_received),
        "change_given": to_number(order.change_given),
    }
