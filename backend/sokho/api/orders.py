"""
API cho module Đơn hàng bán.

- Tạo / sửa / hủy đơn "Mới"
- Chốt đơn (thanh toán): xuất kho + ghi thu nhập, tất cả hoặc không gì cả
- Báo giá xem trước, in hóa đơn HTML
"""

from __future__ import annotations

import logging

from robyn import Request, Response

from ..core.db import get_session
from ..core.error_handler import html_response, json_response
from ..core.validators import load_json_body
from ..services import order_service
from ..services.invoice_service import render_invoice
from ..services.notification_service import (
    format_sale_notification,
    send_telegram_notification,
)

logger = logging.getLogger(__name__)


def list_orders(request: Request) -> Response:  # type: ignore[override]
    """GET /api/orders?status=Mới|Hoàn thành|Đã hủy"""

    status = request.query_params.get("status", None) or None
    with get_session() as db:
        orders = order_service.list_orders(db, status=status)
        return json_response([order_service.order_to_dict(o) for o in orders])


def create_order(request: Request) -> Response:  # type: ignore[override]
    data = load_json_body(request.body)
    with get_session() as db:
        order = order_service.create_order(db, data)
        return json_response(order_service.order_to_dict(order), status_code=201)


def get_order(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        order = order_service.get_order(db, request.path_params.get("id"))
        return json_response(order_service.order_to_dict(order))


def update_order(request: Request) -> Response:  # type: ignore[override]
    data = load_json_body(request.body)
    with get_session() as db:
        order = order_service.update_order(db, request.path_params.get("id"), data)
        return json_response(order_service.order_to_dict(order))


def cancel_order(request: Request) -> Response:  # type: ignore[override]
    with get_session() as db:
        order = order_service.cancel_order(db, request.path_params.get("id"))
        return json_response(order_service.order_to_dict(order))


def settle_order(request: Request) -> Response:  # type: ignore[override]
    """POST /api/orders/:id/settle

    Payload:
    {
      "payment_method": "cash" | "transfer",
      "discount_percentage": 10,        (hoặc "direct_discount_amount")
      "other_income_amount": 0,
      "cash_received": 200000            (bắt buộc khi trả tiền mặt)
    }
    """
    data = load_json_body(request.body)
    with get_session() as db:
        order = order_service.settle_order(db, request.path_params.get("id"), data)
        result = order_service.order_to_dict(order)

    # Thông báo gửi sau khi đã commit; lỗi gửi không ảnh hưởng đơn
    send_telegram_notification(format_sale_notification(result))
    return json_response(result)


def quote_order(request: Request) -> Response:  # type: ignore[override]
    """POST /api/orders/quote: tính trước số tiền, không ghi DB."""

    data = load_json_body(request.body)
    with get_session() as db:
        return json_response(order_service.quote_order(db, data))


def get_invoice(request: Request) -> Response:  # type: ignore[override]
    """GET /api/orders/:id/invoice: hóa đơn HTML để in."""

    with get_session() as db:
        order = order_service.get_order(db, request.path_params.get("id"))
        data = order_service.order_to_dict(order)
    return html_response(render_invoice(data))
